"""
Tests for the Flask HTTP API.
"""

import pytest

from imgcompare.app import create_app
from imgcompare.database import HashStore


@pytest.fixture
def app(temp_cache_db):
    app = create_app(database_path=temp_cache_db, threshold=15, grid_size=64)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


class TestConfigEndpoint:
    """Test GET /api/config."""

    def test_config(self, client, temp_cache_db):
        response = client.get('/api/config')
        assert response.status_code == 200
        assert response.get_json() == {
            'threshold': 15,
            'grid_size': 64,
            'database_path': temp_cache_db,
        }


class TestScanEndpoint:
    """Test POST /api/scan."""

    def test_scan_finds_group(self, client, same_content_dir):
        response = client.post('/api/scan', json={'paths': [str(same_content_dir)]})
        assert response.status_code == 200

        data = response.get_json()
        assert data['success'] is True
        assert data['duplicate_count'] == 1
        assert len(data['duplicates'][0]) == 3
        assert all(f['exists'] for f in data['duplicates'][0])
        assert data['stats']['total_files'] == 3
        assert "3 images" in data['message']

    def test_scan_populates_cache(self, client, same_content_dir, temp_cache_db):
        client.post('/api/scan', json={'paths': [str(same_content_dir)]})
        with HashStore(temp_cache_db) as store:
            assert len(store.all_entries()) == 3

    def test_scan_requires_body(self, client):
        response = client.post('/api/scan')
        assert response.status_code == 400

    def test_scan_requires_paths(self, client):
        response = client.post('/api/scan', json={'paths': []})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_scan_invalid_threshold(self, client, same_content_dir):
        response = client.post('/api/scan', json={'paths': [str(same_content_dir)], 'threshold': 500})
        assert response.status_code == 400

    def test_scan_invalid_grid_size(self, client, same_content_dir):
        response = client.post('/api/scan', json={'paths': [str(same_content_dir)], 'grid_size': 2})
        assert response.status_code == 400


class TestMatchesEndpoint:
    """Test GET /api/matches."""

    def _populate(self, temp_cache_db):
        with HashStore(temp_cache_db) as store:
            store.record("/a.png", 1, "d1", "0000000000000000")
            store.record("/b.png", 1, "d2", "0000000000000001")
            store.record("/c.png", 1, "d3", "ffffffffffffffff")
            store.record("/d.png", 1, "d4", "fffffffffffffffe")

    def test_matches(self, client, temp_cache_db):
        self._populate(temp_cache_db)
        response = client.get('/api/matches?threshold=2')
        data = response.get_json()
        assert data['success'] is True
        assert data['threshold'] == 2
        assert [[f['path'] for f in g] for g in data['duplicates']] == [
            ["/a.png", "/b.png"],
            ["/c.png", "/d.png"],
        ]

    def test_matches_paginated(self, client, temp_cache_db):
        self._populate(temp_cache_db)
        data = client.get('/api/matches?threshold=2&limit=1&offset=1').get_json()
        assert [[f['path'] for f in g] for g in data['duplicates']] == [["/c.png", "/d.png"]]

    def test_matches_default_threshold(self, client, temp_cache_db):
        self._populate(temp_cache_db)
        data = client.get('/api/matches').get_json()
        assert data['threshold'] == 15

    def test_matches_empty_cache(self, client):
        data = client.get('/api/matches').get_json()
        assert data['duplicates'] == []

    def test_matches_invalid_pagination(self, client):
        response = client.get('/api/matches?limit=-1')
        assert response.status_code == 400


class TestCheckFiles:
    """Test POST /api/check-files."""

    def test_check_files(self, client, sample_images):
        response = client.post('/api/check-files', json={
            'paths': [sample_images['same_png'], '/does/not/exist.png'],
        })
        assert response.get_json()['files'] == [
            {'path': sample_images['same_png'], 'exists': True},
            {'path': '/does/not/exist.png', 'exists': False},
        ]

    def test_check_files_bad_input(self, client):
        response = client.post('/api/check-files', json={'paths': 'nope'})
        assert response.status_code == 400


class TestImageEndpoint:
    """Test GET /api/image."""

    def test_serves_cached_file(self, client, sample_images, temp_cache_db):
        path = sample_images['same_png']
        with HashStore(temp_cache_db) as store:
            store.record(path, 1, "d1", "0000000000000000")

        response = client.get('/api/image', query_string={'path': path})
        assert response.status_code == 200
        assert response.mimetype == 'image/png'
        response.close()

    def test_rejects_unknown_file(self, client, sample_images):
        response = client.get('/api/image', query_string={'path': sample_images['same_png']})
        assert response.status_code == 403

    def test_rejects_relative_path(self, client):
        response = client.get('/api/image', query_string={'path': 'relative.png'})
        assert response.status_code == 400

    def test_missing_path_param(self, client):
        assert client.get('/api/image').status_code == 400

    def test_cached_but_deleted(self, client, temp_dir, temp_cache_db):
        path = str(temp_dir / "gone.png")
        with HashStore(temp_cache_db) as store:
            store.record(path, 1, "d1", "0000000000000000")
        response = client.get('/api/image', query_string={'path': path})
        assert response.status_code == 404


class TestCacheEndpoints:
    """Test cache maintenance endpoints."""

    def test_stats(self, client, temp_cache_db):
        with HashStore(temp_cache_db) as store:
            store.record("/a.png", 1, "d1", "0000000000000000")
        stats = client.get('/api/cache/stats').get_json()
        assert stats['total_files'] == 1

    def test_entry(self, client, temp_cache_db):
        with HashStore(temp_cache_db) as store:
            store.record("/a.png", 2048, "d1", "0000000000000000")

        data = client.get('/api/cache/entry?path=/a.png').get_json()
        assert data['filename'] == "a.png"
        assert data['content_digest'] == "d1"
        assert data['size_formatted'] == "2.0 KB"

    def test_entry_unknown(self, client):
        assert client.get('/api/cache/entry?path=/nope.png').status_code == 404

    def test_cleanup(self, client, temp_dir, temp_cache_db):
        kept = temp_dir / "kept.png"
        kept.write_bytes(b"x")
        with HashStore(temp_cache_db) as store:
            store.record(str(kept), 1, "d1", "0000000000000000")
            store.record(str(temp_dir / "gone.png"), 1, "d2", "0000000000000001")

        data = client.post('/api/cache/cleanup').get_json()
        assert data == {'success': True, 'files_removed': 1, 'hashes_removed': 1}

    def test_forget(self, client, temp_cache_db):
        with HashStore(temp_cache_db) as store:
            store.record("/a.png", 1, "d1", "0000000000000000")

        data = client.post('/api/cache/forget', json={'path': '/a.png'}).get_json()
        assert data == {'success': True, 'removed': True}

        with HashStore(temp_cache_db) as store:
            assert not store.contains("/a.png")

    def test_forget_requires_path(self, client):
        assert client.post('/api/cache/forget', json={}).status_code == 400

    def test_store_unavailable(self, temp_dir):
        blocker = temp_dir / "file"
        blocker.write_text("x")
        app = create_app(database_path=str(blocker / "hashes.db"))
        response = app.test_client().get('/api/cache/stats')
        assert response.status_code == 503
