# Streamlit dashboards, one module per role
