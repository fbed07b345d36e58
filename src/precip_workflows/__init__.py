# precip_workflows/__init__.py
# Config-driven stages that run precip_analytics over station CSV files.
