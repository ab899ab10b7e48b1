import streamlit as st
import pandas as pd
import plotly.express as px

from results import RESULTS_DIR, load_results


@st.cache_data
def load_results_cached(results_dir):
    return load_results(results_dir)


def timing_histogram(times, title, nbins=30, log_scale=False, caption=None):
    """Histogram of a column of timings in seconds, and its percentiles in milliseconds."""
    times = times.dropna()
    if log_scale:
        # log axes cannot show zero timings
        times = times[times > 0]
    if times.empty:
        st.write(f"No timings available for {title}.")
        return

    fig = px.histogram(times, nbins=nbins, title=title, log_x=log_scale,
                       labels={'value': 'Time (s, log scale)' if log_scale else 'Time (s)'})
    fig.update_layout(bargap=0.1, showlegend=False)
    st.plotly_chart(fig, use_container_width=True)

    stats = times.describe(percentiles=[0.25, 0.5, 0.75, 0.95])
    st.dataframe(stats.drop('count').mul(1000.0).round(3).rename('ms'))
    st.write(f"{int(stats['count'])} problems")
    if caption:
        st.caption(caption)


# --- Streamlit App Layout ---
st.set_page_config(layout="wide")
st.title("HiGHS simplex benchmark on CSC problems")

results_dir = st.sidebar.text_input("Results directory", RESULTS_DIR)
df_results = load_results_cached(results_dir)

if not df_results.empty:
    total = len(df_results)
    succeeded = int(df_results['succeeded'].sum())
    col_a, col_b, col_c = st.columns(3)
    col_a.metric(label="Problems", value=total)
    col_b.metric(label="Solved to optimality", value=succeeded)
    col_c.metric(label="Failed", value=total - succeeded)

    st.header("Results DataFrame")
    st.dataframe(df_results[[
        'problem_name', 'status', 'rows', 'cols', 'nnz', 'density',
        'parse_time_seconds', 'solve_time_seconds', 'objective_value',
        'primal_residual', 'model_status', 'error',
    ]].round(6))

    st.header("Distribution Analysis")
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Solve Time")
        timing_histogram(
            df_results['solve_time_seconds'],
            title="Distribution of HiGHS Solve Time",
            log_scale=True,
        )

        st.subheader("Parse Time")
        timing_histogram(
            df_results['parse_time_seconds'],
            title="Distribution of CSC Parse Time",
            caption="Time to read, decode and validate the problem file.",
        )

    with col2:
        st.subheader("Solve Time vs. Nonzeros")
        solved = df_results.dropna(subset=['solve_time_seconds', 'nnz'])
        if not solved.empty:
            fig = px.scatter(solved, x='nnz', y='solve_time_seconds', color='status',
                             hover_name='problem_name', log_x=True,
                             labels={'nnz': 'Nonzeros', 'solve_time_seconds': 'Solve time (s)'})
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.write("No solved problems to plot.")

        st.subheader("Outcomes")
        counts = df_results['status'].value_counts().rename_axis('status').reset_index(name='count')
        st.plotly_chart(px.bar(counts, x='status', y='count'), use_container_width=True)

    failures = df_results[~df_results['succeeded']]
    if not failures.empty:
        st.header("Failures")
        st.table(pd.DataFrame({'problem': failures['problem_name'], 'error': failures['error']}))

else:
    st.info(f"No result records found in '{results_dir}'. Run `python main.py <path>` first.")
