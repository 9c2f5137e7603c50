"""Tests for listing operations business logic."""

import pytest

from filegate.apps.files.exceptions import InvalidPaginationError
from filegate.apps.files.logic.listing_operations import (
    get_file,
    get_file_stats,
    list_files,
)
from filegate.apps.files.logic.quota_operations import evict_usage_cache
from filegate.apps.files.models import File


@pytest.fixture
def mixed_files(user, other_user, make_file):
    """Files of several types for user, one file for other_user.

    Returns:
        User's files, oldest first.
    """
    created = [
        make_file(user, 'photo.PNG', content_type='image/png', size_bytes=100),
        make_file(user, 'scan.jpg', content_type='image/jpeg', size_bytes=200),
        make_file(user, 'Report.pdf', content_type='application/pdf'),
        make_file(user, 'notes.txt', content_type='text/plain'),
    ]
    make_file(other_user, 'report-other.pdf', content_type='application/pdf')
    return created


@pytest.mark.django_db
def test_list_files_newest_first(user, mixed_files):
    """Test listing is scoped to owner and newest first."""
    page = list_files(user.pk)

    assert page.total == 4
    assert [item.filename for item in page.items] == [
        'notes.txt',
        'Report.pdf',
        'scan.jpg',
        'photo.PNG',
    ]


@pytest.mark.django_db
def test_list_files_pagination(user, mixed_files):
    """Test page slicing and page count."""
    second = list_files(user.pk, page=1, size=3)

    assert second.total == 4
    assert second.total_pages == 2
    assert [item.filename for item in second.items] == ['photo.PNG']
    assert list_files(user.pk, page=5, size=3).items == []


@pytest.mark.django_db
def test_list_files_content_type_wildcard(user, mixed_files):
    """Test wildcard content type filter."""
    page = list_files(user.pk, content_type='image/*')

    assert {item.filename for item in page.items} == {'photo.PNG', 'scan.jpg'}


@pytest.mark.django_db
def test_list_files_content_type_exact(user, mixed_files):
    """Test exact content type filter is case-insensitive."""
    page = list_files(user.pk, content_type='Application/PDF')

    assert [item.filename for item in page.items] == ['Report.pdf']


@pytest.mark.django_db
def test_list_files_search(user, mixed_files):
    """Test case-insensitive filename search stays within owner."""
    page = list_files(user.pk, search='REPORT')

    assert [item.filename for item in page.items] == ['Report.pdf']


@pytest.mark.django_db
def test_list_files_search_wins_over_content_type(user, mixed_files):
    """Test search takes precedence over the type filter."""
    page = list_files(user.pk, content_type='image/*', search='notes')

    assert [item.filename for item in page.items] == ['notes.txt']


@pytest.mark.django_db
def test_list_files_blank_filters_list_all(user, mixed_files):
    """Test blank filters are ignored."""
    assert list_files(user.pk, content_type=' ', search='').total == 4


@pytest.mark.parametrize(('page', 'size'), [
    (-1, 20),
    (0, 0),
    (0, 101),
])
def test_list_files_invalid_pagination(page, size):
    """Test out of range page and size."""
    with pytest.raises(InvalidPaginationError) as exc_info:
        list_files(1, page=page, size=size)

    assert exc_info.value.code == 'invalid_pagination'


@pytest.mark.django_db
def test_get_file(user, mixed_files):
    """Test single file lookup."""
    dto = get_file(user.pk, mixed_files[0].pk)

    assert dto.filename == 'photo.PNG'
    assert dto.size_bytes == 100


@pytest.mark.django_db
def test_get_file_of_other_owner(user, other_user, mixed_files):
    """Test other owners' files look missing."""
    foreign = File.objects.owned_by(other_user.pk).get()

    with pytest.raises(File.DoesNotExist):
        get_file(user.pk, foreign.pk)


@pytest.mark.django_db
def test_get_file_stats(user, mixed_files):
    """Test count and total size."""
    stats = get_file_stats(user.pk)

    assert stats.file_count == 4
    assert stats.total_size_bytes == 320


@pytest.mark.django_db
def test_get_file_stats_empty_not_cached(user, make_file):
    """Test zero stats are recomputed on the next call."""
    assert get_file_stats(user.pk).file_count == 0

    make_file(user)

    assert get_file_stats(user.pk).file_count == 1


@pytest.mark.django_db
def test_get_file_stats_cached_until_evicted(user, make_file):
    """Test non-empty stats are cached until eviction."""
    make_file(user, 'a.txt')
    assert get_file_stats(user.pk).file_count == 1

    make_file(user, 'b.txt')
    assert get_file_stats(user.pk).file_count == 1

    evict_usage_cache(user.pk)
    assert get_file_stats(user.pk).file_count == 2
