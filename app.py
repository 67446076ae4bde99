# app.py
# ------------------------------------------------------------
# GreenCloud 連絡先抽出ビューア (Streamlit + LangGraph)
#   streamlit run app.py
# ------------------------------------------------------------
import logging

from config import settings
from ui import render_page

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

render_page()
