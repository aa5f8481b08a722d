"""JSON and CSV response helpers shared by the API blueprints."""
from datetime import date

from flask import Response, jsonify, request

from app.exceptions import BusinessLogicError
from app.utils.number_format import parse_iso_date


def ok(data=None, status=200):
    """Success envelope: {"success": true, "data": ...}."""
    body = {'success': True}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def json_body() -> dict:
    """Request JSON object; an empty body counts as {}."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BusinessLogicError('Request body must be a JSON object')
    return payload


def csv_download(content: str, basename: str) -> Response:
    filename = f"{basename}-{date.today().isoformat()}.csv"
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


def query_date(name: str):
    """Optional YYYY-MM-DD query string argument."""
    try:
        return parse_iso_date(request.args.get(name), name)
    except ValueError as e:
        raise BusinessLogicError(str(e))
