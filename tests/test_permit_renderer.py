import os
from datetime import date

import pytest

from commute_permits.utils.error_handler import ArtifactRenderError
from commute_permits.utils.permit_renderer import PermitArtifact, PermitRenderer, build_verification_url


def artifact(**overrides):
    fields = dict(
        permit_id=12,
        employee_name='Taro Yamada',
        vehicle_number='SHINAGAWA 300 A 1234',
        vehicle_model='Toyota Prius',
        issue_date=date(2026, 4, 1),
        expiration_date=date(2027, 3, 31),
        verification_url='https://permits.example.test/verify/abc',
    )
    fields.update(overrides)
    return PermitArtifact(**fields)


def test_verification_url():
    assert build_verification_url('https://permits.example.test/', 'tok') == 'https://permits.example.test/verify/tok'


def test_render_writes_pdf(tmp_path):
    renderer = PermitRenderer(str(tmp_path / 'permits'), company_name='Example Corp')
    
    file_key = renderer.render(artifact())
    
    assert file_key == 'permit_12_SHINAGAWA_300_A_1234.pdf'
    path = renderer.path_for(file_key)
    assert os.path.isabs(path)
    with open(path, 'rb') as fh:
        assert fh.read(4) == b'%PDF'


def test_missing_font_raises_render_error(tmp_path):
    renderer = PermitRenderer(str(tmp_path), font_path=str(tmp_path / 'missing.ttf'))
    
    with pytest.raises(ArtifactRenderError):
        renderer.render(artifact())
