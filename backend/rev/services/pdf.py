import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from rev.services.exceptions import PDFRenderError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent.parent.parent / "static"

jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(['html', 'xml'])
)


def format_money(value: Any, currency: str = "XOF") -> str:
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        return str(value)
    if currency in ("XOF", "FCFA"):
        return f"{amount:,.0f} FCFA".replace(",", " ")
    return f"{amount:,.2f} {currency}"


def format_date(value: Any, fmt: str = "%d/%m/%Y") -> str:
    if not value:
        return ""
    return value.strftime(fmt)


jinja_env.filters["money"] = format_money
jinja_env.filters["date"] = format_date


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    return jinja_env.get_template(template_name).render(**context)


async def render_pdf(template_name: str, context: Dict[str, Any]) -> bytes:
    """Render a Jinja2 template and convert the HTML to PDF bytes with WeasyPrint."""
    html_content = render_template(template_name, context)
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as e:
        # WeasyPrint needs system libraries (pango) besides the wheel
        logger.error(f"WeasyPrint unavailable: {e}")
        raise PDFRenderError("PDF rendering is not available on this server.") from e

    loop = asyncio.get_running_loop()
    try:
        with ThreadPoolExecutor() as pool:
            pdf_bytes = await loop.run_in_executor(
                pool, lambda: HTML(string=html_content, base_url=str(STATIC_DIR)).write_pdf()
            )
    except Exception as e:
        logger.error(f"Error generating PDF from {template_name}: {e}", exc_info=True)
        raise PDFRenderError(f"Failed to generate PDF: {e}") from e
    return pdf_bytes
