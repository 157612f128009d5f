# modules/documents/pdf_generator.py - Service-order PDF rendering

import asyncio
import io
import logging
import os
import time
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.lib.enums import TA_CENTER

from utils.formatting import format_brl, format_date
from .config import PDF_TEMP_DIR, BASE_URL, PDF_CLEANUP_DELAY_SECONDS, PDF_FOOTER

logger = logging.getLogger(__name__)


class PDFGenerator:
    """Renders service orders to PDF files inside the temp directory"""

    @staticmethod
    def from_service_order(order) -> dict:
        """Document fields for an order created through the assistant."""
        services = [order.titulo or order.descricao] if (order.titulo or order.descricao) else []
        return {
            "id": order.id,
            "numero": order.numero_os,
            "client_name": order.cliente_nome,
            "client_phone": order.cliente_telefone,
            "services": services,
            "total_amount": order.valor_estimado,
            "status": order.status,
            "notes": order.observacoes or order.descricao,
            "created_at": order.data_abertura,
        }

    @staticmethod
    def from_legacy_order(order) -> dict:
        """Document fields for an order created through the REST API."""
        return {
            "id": order.id,
            "numero": str(order.id),
            "client_name": order.client_name,
            "client_phone": order.client_phone,
            "services": order.services or [],
            "total_amount": order.total_amount,
            "status": order.status,
            "notes": order.notes,
            "created_at": order.created_at,
        }

    @staticmethod
    def build_pdf(data: dict) -> bytes:
        """Render the document fields to PDF bytes"""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=50, leftMargin=50, topMargin=50, bottomMargin=30)

        story = []
        styles = getSampleStyleSheet()

        title_style = ParagraphStyle('CustomTitle', parent=styles['Title'], fontSize=20,
                                     textColor=colors.HexColor('#1a1a1a'), spaceAfter=10)
        heading_style = ParagraphStyle('SectionHeading', parent=styles['Heading2'], fontSize=14,
                                       textColor=colors.HexColor('#333333'), spaceBefore=16, spaceAfter=8)
        body_style = ParagraphStyle('Body', parent=styles['Normal'], fontSize=11, leading=15)

        story.append(Paragraph("ORDEM DE SERVIÇO", title_style))
        story.append(Paragraph(f"Nº {escape(str(data.get('numero') or data.get('id')))}", body_style))
        story.append(Spacer(1, 12))

        story.append(Paragraph("DADOS DO CLIENTE", heading_style))
        client_rows = [
            ['Nome:', data.get('client_name') or 'Cliente não informado'],
            ['Telefone:', data.get('client_phone') or '-'],
            ['Data:', format_date(data.get('created_at'))],
        ]
        client_table = Table(client_rows, colWidths=[1.5 * inch, 4.5 * inch])
        client_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
            ('ALIGN', (1, 0), (1, -1), 'LEFT'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        story.append(client_table)

        story.append(Paragraph("SERVIÇOS REALIZADOS", heading_style))
        services = data.get('services') or []
        if services:
            for index, service in enumerate(services, start=1):
                story.append(Paragraph(f"{index}. {escape(str(service))}", body_style))
        else:
            story.append(Paragraph("Nenhum serviço especificado", body_style))

        story.append(Spacer(1, 16))
        story.append(Paragraph(f"<b>TOTAL: {format_brl(data.get('total_amount'))}</b>", body_style))
        story.append(Paragraph(f"Status: {escape(str(data.get('status') or '').upper())}", body_style))

        if data.get('notes'):
            story.append(Paragraph("OBSERVAÇÕES:", heading_style))
            story.append(Paragraph(escape(str(data['notes'])), body_style))

        story.append(Spacer(1, 30))
        footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=8,
                                      textColor=colors.gray, alignment=TA_CENTER)
        story.append(Paragraph(PDF_FOOTER, footer_style))

        doc.build(story)
        return buffer.getvalue()

    @staticmethod
    def write_pdf(data: dict, temp_dir: str = None) -> str:
        """Render and save as OS_<id>_<timestamp>.pdf; returns the file path"""
        temp_dir = temp_dir or PDF_TEMP_DIR
        os.makedirs(temp_dir, exist_ok=True)

        file_name = f"OS_{data.get('id')}_{int(time.time() * 1000)}.pdf"
        path = os.path.join(temp_dir, file_name)
        with open(path, "wb") as fh:
            fh.write(PDFGenerator.build_pdf(data))

        logger.info(f"📄 PDF generated: {path}")
        return path

    @staticmethod
    def public_url(path: str, base_url: str = None) -> str:
        return f"{base_url or BASE_URL}/temp/{os.path.basename(path)}"

    @staticmethod
    def delete_file(path: str):
        try:
            os.remove(path)
            logger.info(f"🗑️ Temporary PDF removed: {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"⚠️ Could not remove temporary PDF {path}: {e}")

    @staticmethod
    def schedule_cleanup(path: str, delay: float = PDF_CLEANUP_DELAY_SECONDS):
        """Delete the file `delay` seconds from now on the running event loop"""
        loop = asyncio.get_running_loop()
        loop.call_later(delay, PDFGenerator.delete_file, path)
