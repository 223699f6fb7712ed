"""Renders permit artifacts: a one-page PDF carrying a verification QR code."""

import io
import os
from dataclasses import dataclass
from datetime import date

import qrcode
from fpdf import FPDF

from commute_permits.utils.error_handler import ArtifactRenderError
from commute_permits.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PermitArtifact:
    permit_id: int
    employee_name: str
    vehicle_number: str
    vehicle_model: str
    issue_date: date
    expiration_date: date
    verification_url: str


def build_verification_url(base_url, token):
    return f"{base_url.rstrip('/')}/verify/{token}"


class PermitRenderer:
    def __init__(self, storage_dir, font_path=None, company_name=''):
        self.storage_dir = storage_dir
        self.font_path = font_path
        self.company_name = company_name
    
    def make_qr_png(self, url):
        """QR code image for the verification URL, as PNG bytes."""
        qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=8, border=2)
        qr.add_data(url)
        qr.make(fit=True)
        buffer = io.BytesIO()
        qr.make_image().save(buffer)
        buffer.seek(0)
        return buffer
    
    def render(self, artifact):
        """
        Render the permit PDF and return its file key (path relative to storage_dir)
        """
        try:
            pdf = FPDF(orientation='L', unit='mm', format='A5')
            pdf.add_page()
            font = 'Helvetica'
            if self.font_path:
                pdf.add_font('permit', fname=self.font_path)
                font = 'permit'
            
            pdf.set_font(font, size=20)
            pdf.cell(0, 14, 'Commuting Vehicle Permit', align='C', new_x='LMARGIN', new_y='NEXT')
            if self.company_name:
                pdf.set_font(font, size=11)
                pdf.cell(0, 7, self.company_name, align='C', new_x='LMARGIN', new_y='NEXT')
            pdf.ln(6)
            
            pdf.set_font(font, size=12)
            rows = [
                ('Permit No.', str(artifact.permit_id)),
                ('Employee', artifact.employee_name),
                ('Vehicle number', artifact.vehicle_number),
                ('Vehicle', artifact.vehicle_model),
                ('Issued', artifact.issue_date.isoformat()),
                ('Valid until', artifact.expiration_date.isoformat()),
            ]
            for label, value in rows:
                pdf.cell(40, 9, label)
                pdf.cell(90, 9, value or '', new_x='LMARGIN', new_y='NEXT')
            
            pdf.image(self.make_qr_png(artifact.verification_url), x=150, y=40, w=45, h=45)
            pdf.set_xy(140, 88)
            pdf.set_font(font, size=8)
            pdf.cell(65, 5, 'Scan to verify', align='C')
            
            file_key = f"permit_{artifact.permit_id}_{artifact.vehicle_number.replace(' ', '_').replace('/', '_')}.pdf"
            os.makedirs(self.storage_dir, exist_ok=True)
            pdf.output(os.path.join(self.storage_dir, file_key))
        except Exception as e:
            logger.error(f"Error rendering permit {artifact.permit_id}: {e}", exc_info=True)
            raise ArtifactRenderError(f"Permit artifact rendering failed: {e}") from e
        
        return file_key
    
    def path_for(self, file_key):
        return os.path.abspath(os.path.join(self.storage_dir, file_key))
