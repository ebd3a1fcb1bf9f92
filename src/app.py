#!/usr/bin/env python
"""
Streamlit Web UI for PDF to Word conversion.

Run with:
    streamlit run src/app.py

Features:
- Upload a PDF
- Progress bar while pages are extracted, recognized and rebuilt
- Choice between embedding scanned pages as images or running OCR
- Warnings list and structured content preview
- DOCX download
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import logging

import streamlit as st

from pdfword import (
    ConversionError, ConversionResult, PdfToWordConverter, PendingChoice, __version__, get_config,
)
from pdfword.config import DOCX_MIME_TYPE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pdfword.app")


# Page config must be first Streamlit command
st.set_page_config(
    page_title="PDF to Word",
    page_icon="📄",
    layout="wide",
    initial_sidebar_state="expanded"
)


def load_css():
    """Load custom CSS styles."""
    st.markdown("""
    <style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #1E88E5;
        text-align: center;
        margin-bottom: 1rem;
    }
    .sub-header {
        font-size: 1.2rem;
        color: #888;
        text-align: center;
        margin-bottom: 2rem;
    }
    .block-preview {
        background-color: rgba(30, 136, 229, 0.1);
        border-radius: 5px;
        padding: 1rem;
        margin: 0.5rem 0;
        border-left: 4px solid #1E88E5;
        color: inherit;
    }
    .table-block {
        border-left-color: #4CAF50;
        background-color: rgba(76, 175, 80, 0.1);
    }
    </style>
    """, unsafe_allow_html=True)


def init_session_state():
    """Initialize session state variables."""
    if "result" not in st.session_state:
        st.session_state.result = None
    if "pending" not in st.session_state:
        st.session_state.pending = None
    if "file_name" not in st.session_state:
        st.session_state.file_name = None
    if "error" not in st.session_state:
        st.session_state.error = None


def reset_session_state():
    st.session_state.result = None
    st.session_state.pending = None
    st.session_state.error = None


def render_sidebar() -> dict:
    """Render sidebar with settings."""
    st.sidebar.header("⚙️ Settings")

    defaults = get_config()

    st.sidebar.subheader("Output")
    page_breaks = st.sidebar.checkbox(
        "Page breaks",
        value=defaults.export.page_breaks,
        help="Start every PDF page on a new Word page"
    )

    st.sidebar.subheader("OCR")
    lang = st.sidebar.text_input(
        "Tesseract language",
        value=defaults.ocr.tesseract_lang,
        help="Language code(s) for scanned pages, e.g. 'eng' or 'eng+deu'"
    )

    return {"page_breaks": page_breaks, "lang": lang}


def build_converter(settings: dict) -> PdfToWordConverter:
    config = get_config()
    config.export.page_breaks = settings["page_breaks"]
    if settings["lang"]:
        config.ocr.tesseract_lang = settings["lang"]
    return PdfToWordConverter(config)


def make_progress_callback(progress_bar):
    def on_progress(percent: float):
        progress_bar.progress(int(percent), text=f"Converting... {percent:.0f}%")
    return on_progress


def run_convert(data: bytes, settings: dict):
    """Start a conversion; stores either the result or the pending choice."""
    progress_bar = st.progress(0, text="Reading PDF...")
    converter = build_converter(settings)

    try:
        outcome = converter.convert(data, on_progress=make_progress_callback(progress_bar))
    except ConversionError as e:
        logger.error(f"Conversion failed: {e}")
        st.session_state.error = str(e)
        return

    if isinstance(outcome, PendingChoice):
        st.session_state.pending = outcome
    else:
        st.session_state.result = outcome


def run_resume(choice: str, settings: dict):
    """Continue a paused conversion with the user's choice."""
    pending = st.session_state.pending
    progress_bar = st.progress(20, text="Continuing...")
    converter = build_converter(settings)

    try:
        st.session_state.result = converter.resume_with_choice(
            pending, choice, on_progress=make_progress_callback(progress_bar)
        )
    except ConversionError as e:
        logger.error(f"Conversion failed: {e}")
        st.session_state.error = str(e)
    finally:
        st.session_state.pending = None


def render_scanned_dialog(settings: dict):
    """Ask how to handle pages without a text layer."""
    pending: PendingChoice = st.session_state.pending

    st.warning(
        f"**{pending.scanned_page_count} of {pending.page_count} page(s)** have no text layer "
        f"(pages {', '.join(str(n) for n in pending.scanned_pages)})."
    )
    st.markdown("How should these pages be converted?")

    cols = st.columns(3)
    with cols[0]:
        if st.button("🖼️ Keep as images", use_container_width=True):
            run_resume("image", settings)
            st.rerun()
    with cols[1]:
        if st.button("🔤 Recognize text (OCR)", use_container_width=True, type="primary"):
            with st.spinner("Running OCR..."):
                run_resume("ocr", settings)
            st.rerun()
    with cols[2]:
        if st.button("✖️ Cancel", use_container_width=True):
            reset_session_state()
            st.rerun()


def render_page_content(page: dict):
    """Preview the blocks of one page."""
    blocks = page.get("blocks", [])
    if not blocks:
        st.info("No content on this page")
        return

    for block in blocks:
        block_type = block.get("type")

        if block_type == "paragraph":
            kind = block.get("kind", "body")
            text = block.get("text", "")
            if kind == "heading":
                st.markdown(f"#### {text}")
            elif kind == "bullet_item":
                st.markdown(f"- {text}")
            elif kind == "numbered_item":
                st.markdown(f"1. {text}")
            else:
                st.markdown(
                    f'<div class="block-preview" style="text-align:{block.get("alignment", "left")}">'
                    f'{text}</div>',
                    unsafe_allow_html=True
                )

        elif block_type == "table":
            st.markdown('<div class="block-preview table-block"><small>Table</small></div>',
                        unsafe_allow_html=True)
            st.table(block.get("rows", []))

        elif block_type == "image":
            st.caption(
                f"🖼️ Image {block.get('width')}x{block.get('height')} "
                f"{block.get('description', '')}"
            )


def render_result(result: ConversionResult):
    st.success(f"✅ Converted {result.page_count} page(s) ({result.method.value})")

    pages = [p.to_dict() for p in result.pages]

    cols = st.columns(4)
    cols[0].metric("Pages", result.page_count)
    cols[1].metric("Paragraphs", sum(len(p.paragraphs) for p in result.pages))
    cols[2].metric("Tables", sum(len(p.tables) for p in result.pages))
    cols[3].metric("Images", sum(len(p.images) for p in result.pages))

    if result.warnings:
        with st.expander(f"⚠️ {len(result.warnings)} warning(s)"):
            for warning in result.warnings:
                st.markdown(f"- {warning}")

    file_name = Path(st.session_state.file_name or "document.pdf").with_suffix(".docx").name
    st.download_button(
        "📋 Download DOCX",
        result.data,
        file_name=file_name,
        mime=DOCX_MIME_TYPE,
        use_container_width=True,
        type="primary"
    )

    st.markdown("---")

    tabs = st.tabs(["📖 Content", "📄 Raw JSON"])
    with tabs[0]:
        if len(pages) > 1:
            page_num = st.selectbox(
                "Select page",
                range(1, len(pages) + 1),
                format_func=lambda x: f"Page {x}"
            )
            render_page_content(pages[page_num - 1])
        elif pages:
            render_page_content(pages[0])
        else:
            st.info("No content extracted")

    with tabs[1]:
        st.json(result.to_dict())


def main():
    """Main application."""
    load_css()
    init_session_state()

    # Header
    st.markdown('<h1 class="main-header">📄 PDF to Word</h1>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Rebuild PDFs as editable Word documents with paragraphs, tables and images</p>',
        unsafe_allow_html=True
    )

    settings = render_sidebar()

    st.markdown("---")

    uploaded_file = st.file_uploader(
        "Upload a PDF",
        type=["pdf"],
        help="Upload a PDF document to convert"
    )

    if uploaded_file:
        if uploaded_file.name != st.session_state.file_name:
            reset_session_state()
            st.session_state.file_name = uploaded_file.name

        col1, col2 = st.columns([2, 1])
        with col1:
            st.info(f"📁 **{uploaded_file.name}** ({uploaded_file.size / 1024:.1f} KB)")
        with col2:
            convert_btn = st.button(
                "🚀 Convert to Word",
                use_container_width=True,
                type="primary",
                disabled=st.session_state.pending is not None
            )

        if convert_btn:
            reset_session_state()
            run_convert(uploaded_file.getvalue(), settings)

    if st.session_state.error:
        st.error(f"❌ {st.session_state.error}")

    if st.session_state.pending is not None:
        render_scanned_dialog(settings)

    if st.session_state.result is not None:
        st.markdown("---")
        render_result(st.session_state.result)

    # Footer
    st.markdown("---")
    st.markdown(
        f"""
        <div style="text-align: center; color: #666; font-size: 0.8rem;">
            PDF to Word v{__version__} |
            Built with Streamlit, pdfminer.six, pikepdf and python-docx
        </div>
        """,
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    main()
