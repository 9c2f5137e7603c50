"""Tests for metadata utilities."""

import re
import uuid

import pytest

from filegate.apps.files.exceptions import (
    InvalidFilenameError,
    UnsupportedContentTypeError,
)
from filegate.apps.files.infrastructure.metadata import (
    MAX_CONTENT_TYPE_LENGTH,
    MAX_FILENAME_LENGTH,
    ContentTypeValidator,
    build_object_key,
    get_file_extension,
    owner_prefix,
    placeholder_filename,
    resolve_content_type,
    sanitize_filename,
)


def test_sanitize_filename_path_traversal():
    """Test traversal sequences and separators are removed."""
    assert sanitize_filename('../../etc/passwd') == 'etcpasswd'


@pytest.mark.parametrize(('raw', 'expected'), [
    ('report.pdf', 'report.pdf'),
    ('my report (final).pdf', 'my_report__final_.pdf'),
    ('..\\..\\windows\\system32', 'windowssystem32'),
    ('  spaced.txt  ', 'spaced.txt'),
    ('...hidden...', 'hidden'),
    ('nul\x00byte.txt', 'nulbyte.txt'),
    ('zażółć.txt', 'za____.txt'),
    ('./././.', 'file_placeholder'),
])
def test_sanitize_filename_cases(raw, expected, monkeypatch):
    """Test representative unsafe names."""
    monkeypatch.setattr(
        'filegate.apps.files.infrastructure.metadata.placeholder_filename',
        lambda: 'file_placeholder',
    )

    assert sanitize_filename(raw) == expected


@pytest.mark.parametrize('raw', [
    '../../etc/passwd',
    'a/./b/../c.txt',
    '.../....//x',
    'weird name!@#$.tar.gz',
    '.' * 10 + 'x' * 300 + '.bin',
])
def test_sanitize_filename_is_idempotent(raw):
    """Test sanitizing a sanitized name changes nothing."""
    once = sanitize_filename(raw)

    assert sanitize_filename(once) == once


@pytest.mark.parametrize('raw', [
    '../../etc/passwd',
    '..././..././secret',
    'dir\\..\\file',
    '....//....//x',
])
def test_sanitize_filename_output_is_safe(raw):
    """Test output never contains separators or parent references."""
    sanitized = sanitize_filename(raw)

    assert sanitized
    assert '..' not in sanitized
    assert '/' not in sanitized
    assert '\\' not in sanitized
    assert re.fullmatch(r'[A-Za-z0-9._-]+', sanitized)


def test_sanitize_filename_truncates_keeping_extension():
    """Test long names are cut to 255 characters with extension kept."""
    sanitized = sanitize_filename('a' * 300 + '.pdf')

    assert len(sanitized) == MAX_FILENAME_LENGTH
    assert sanitized.endswith('.pdf')


def test_sanitize_filename_truncates_without_extension():
    """Test long names without extension are simply cut."""
    assert sanitize_filename('b' * 300) == 'b' * MAX_FILENAME_LENGTH


@pytest.mark.parametrize('raw', [None, '', '   '])
def test_sanitize_filename_rejects_blank(raw):
    """Test missing or blank names are rejected."""
    with pytest.raises(InvalidFilenameError):
        sanitize_filename(raw)


def test_placeholder_filename_format():
    """Test generated names carry epoch milliseconds."""
    assert re.fullmatch(r'file_\d{13,}', placeholder_filename())


def test_get_file_extension():
    """Test extension extraction."""
    assert get_file_extension('document.pdf') == '.pdf'
    assert get_file_extension('archive.tar.gz') == '.gz'
    assert get_file_extension('README') == ''
    assert get_file_extension('.bashrc') == ''


def test_resolve_content_type():
    """Test missing content types fall back to octet-stream."""
    assert resolve_content_type(None) == 'application/octet-stream'
    assert resolve_content_type('  ') == 'application/octet-stream'
    assert resolve_content_type(' text/plain ') == 'text/plain'


def test_build_object_key():
    """Test key layout under the owner's prefix."""
    file_uuid = uuid.UUID('12345678-1234-5678-1234-567812345678')

    key = build_object_key(42, 'report.pdf', file_uuid)

    assert key == f'users/42/files/{file_uuid}-report.pdf'
    assert key.startswith(owner_prefix(42))


def test_build_object_key_is_unique_per_call():
    """Test fresh UUIDs make keys for the same name differ."""
    assert build_object_key(1, 'a.txt') != build_object_key(1, 'a.txt')


def test_content_type_validator_wildcard():
    """Test wildcard and exact patterns."""
    validator = ContentTypeValidator('image/*,application/pdf')

    assert validator.is_allowed('image/png')
    assert validator.is_allowed('IMAGE/JPEG')
    assert validator.is_allowed('application/pdf')
    assert not validator.is_allowed('application/zip')
    assert not validator.is_allowed('imagery/png')


def test_content_type_validator_parses_list():
    """Test patterns from a list are trimmed and blanks dropped."""
    validator = ContentTypeValidator([' text/* ', '', 'application/pdf'])

    assert validator.allowed_patterns == ['text/*', 'application/pdf']


@pytest.mark.parametrize('content_type', [None, '', 'application/zip'])
def test_content_type_validator_rejects(content_type):
    """Test validate raises for blank and unlisted types."""
    validator = ContentTypeValidator('image/*,application/pdf')

    with pytest.raises(UnsupportedContentTypeError) as exc_info:
        validator.validate(content_type)

    assert exc_info.value.code == 'unsupported_content_type'
    assert exc_info.value.allowed == ['image/*', 'application/pdf']


def test_content_type_validator_length_limit():
    """Test types longer than the content type column are rejected."""
    validator = ContentTypeValidator('image/*')
    widest = 'image/' + 'a' * (MAX_CONTENT_TYPE_LENGTH - len('image/'))

    assert validator.is_allowed(widest)
    assert not validator.is_allowed(f'{widest}a')
    with pytest.raises(UnsupportedContentTypeError):
        validator.validate('image/' + 'a' * 300)
