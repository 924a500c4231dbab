"""
Flask routes for the imgcompare HTTP API.

Every request opens the hash store, uses it, and releases it before the
response is returned.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Blueprint, current_app, jsonify, request, send_file

from ..database import open_store
from ..errors import StoreError, StoreUnavailable
from ..scanner import cached_duplicates, compute_duplicates, scan_for_images
from ..utils import validators

# Create blueprint for routes
api = Blueprint('api', __name__)

# Module logger
_logger = logging.getLogger(__name__)


def _settings() -> dict:
    return current_app.config['IMGCOMPARE']


def _file_infos(groups: list, check_exists: bool) -> list:
    return [
        [{'path': p, 'exists': os.path.exists(p) if check_exists else True} for p in group]
        for group in groups
    ]


def _bad_request(message: str):
    return jsonify({'success': False, 'error': message}), 400


# =============================================================================
# Error Handlers
# =============================================================================

@api.errorhandler(StoreUnavailable)
def handle_store_unavailable(e: StoreUnavailable):
    _logger.error(f"Hash store unavailable: {e}")
    return jsonify({'success': False, 'error': str(e)}), 503


@api.errorhandler(StoreError)
def handle_store_error(e: StoreError):
    _logger.error(f"Hash store error during {e.operation}: {e}")
    return jsonify({'success': False, 'error': str(e)}), 500


# =============================================================================
# Route Handlers
# =============================================================================

@api.route('/api/scan', methods=['POST'])
def api_scan():
    """Scan paths, hash through the cache and return duplicate sets."""
    data = request.get_json(silent=True)
    if not data:
        return _bad_request('Request body required')

    settings = _settings()
    paths = data.get('paths', [])
    threshold = data.get('threshold', settings['threshold'])
    grid_size = data.get('grid_size', settings['grid_size'])

    is_valid, error = validators.validate_scan_params(
        paths,
        threshold=threshold,
        grid_size=grid_size,
    )
    if not is_valid:
        return _bad_request(error)

    images = scan_for_images(
        paths,
        include_hidden=bool(data.get('include_hidden', False)),
        skip_validation=bool(data.get('skip_validation', False)),
        ignore_paths=settings['ignore_paths'],
    )

    with open_store(settings['database_path']) as store:
        result = compute_duplicates(
            images,
            store,
            threshold=int(threshold),
            grid_size=int(grid_size),
            max_workers=settings['workers'],
        )

    return jsonify({
        'success': True,
        'message': f"Scanned {len(images)} images, found {result.duplicate_count} duplicate sets",
        'duplicate_count': result.duplicate_count,
        'duplicates': _file_infos(result.groups, check_exists=True),
        'stats': result.stats.to_dict(),
    })


@api.route('/api/matches')
def api_matches():
    """Return duplicate sets computed from cached hashes only."""
    settings = _settings()
    threshold = request.args.get('threshold', settings['threshold'], type=int)
    limit = request.args.get('limit', None, type=int)
    offset = request.args.get('offset', 0, type=int)

    for is_valid, error in (
        validators.validate_threshold(threshold),
        validators.validate_pagination(limit, offset),
    ):
        if not is_valid:
            return _bad_request(error)

    with open_store(settings['database_path']) as store:
        groups = cached_duplicates(
            store,
            threshold,
            limit=limit,
            offset=offset,
            max_workers=settings['workers'],
        )

    # Existence is checked lazily through /api/check-files
    return jsonify({
        'success': True,
        'duplicates': _file_infos(groups, check_exists=False),
        'threshold': threshold,
        'limit': limit,
        'offset': offset,
    })


@api.route('/api/config')
def api_config():
    """Return the effective configuration."""
    settings = _settings()
    return jsonify({
        'threshold': settings['threshold'],
        'grid_size': settings['grid_size'],
        'database_path': settings['database_path'],
    })


@api.route('/api/check-files', methods=['POST'])
def api_check_files():
    """Report whether each path still exists."""
    data = request.get_json(silent=True) or {}
    paths = data.get('paths', [])
    if not isinstance(paths, list):
        return _bad_request('Paths must be a list')

    return jsonify({
        'files': [{'path': str(p), 'exists': os.path.exists(str(p))} for p in paths],
    })


@api.route('/api/image')
def api_image():
    """Serve an image file for preview.

    Security: Only serves files recorded in the hash store, so arbitrary
    paths on the host can't be read through this endpoint.
    """
    path = request.args.get('path', '').strip()

    if not path:
        return _bad_request('No path specified')

    if not os.path.isabs(path):
        return _bad_request('Path must be absolute')

    with open_store(_settings()['database_path']) as store:
        known = store.contains(path)

    if not known:
        _logger.warning(f"Blocked access to file not in cache: {path}")
        return jsonify({'success': False, 'error': 'Access denied: file not in cache'}), 403

    is_valid, error = validators.validate_file_accessible(path)
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 404

    response = send_file(path)
    response.headers['Cache-Control'] = 'public, max-age=3600'
    return response


@api.route('/api/cache/stats')
def api_cache_stats():
    """Return cache statistics."""
    with open_store(_settings()['database_path']) as store:
        stats = store.get_stats()
    return jsonify(stats)


@api.route('/api/cache/entry')
def api_cache_entry():
    """Return the cached entry for a single path."""
    path = request.args.get('path', '').strip()
    if not path:
        return _bad_request('No path specified')

    with open_store(_settings()['database_path']) as store:
        entry = store.get_entry(path)

    if entry is None:
        return jsonify({'success': False, 'error': 'File not in cache'}), 404
    return jsonify(entry.to_dict())


@api.route('/api/cache/cleanup', methods=['POST'])
def api_cache_cleanup():
    """Remove entries for missing files and orphaned hashes."""
    with open_store(_settings()['database_path']) as store:
        result = store.sweep_missing_and_hashes()

    response: dict[str, Any] = {'success': True}
    response.update(result.to_dict())
    return jsonify(response)


@api.route('/api/cache/forget', methods=['POST'])
def api_cache_forget():
    """Drop a single path from the cache."""
    data = request.get_json(silent=True) or {}
    path = data.get('path')
    if not isinstance(path, str) or not path:
        return _bad_request('No path specified')

    with open_store(_settings()['database_path']) as store:
        removed = store.forget(path)

    return jsonify({'success': True, 'removed': removed})


__all__ = ['api']
