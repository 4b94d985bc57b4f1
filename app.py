"""Streamlit entry point: ``streamlit run app.py``."""

from voxel_motion.visualization.interactive import main

main()
