import json
from typing import Optional

from chalice.test import Client, HTTPResponse


def make_request(chalice_gateway: Client, endpoint: str = '/', method: str = 'GET',
                 query: Optional[str] = None, json_body=None, token: Optional[str] = None,
                 raw_body: Optional[bytes] = None) -> HTTPResponse:
    """Request to the app through the in-process gateway"""
    headers = {'Content-Type': 'application/json', 'Host': 'test-domain.com'}
    if token is not None:
        headers['Authorization'] = f'Bearer {token}'
    if raw_body is None:
        raw_body = json.dumps(json_body).encode('utf-8') if json_body is not None else b''
    return chalice_gateway.http.request(
        method=method,
        path=f"{endpoint}?{query}" if query else f"{endpoint}",
        headers=headers,
        body=raw_body
    )


def assert_error(response: HTTPResponse, status_code: int, code: str) -> dict:
    body = response.json_body
    assert response.status_code == status_code, f"status code not as expected, body={body}"
    assert body['code'] == code, f"error code not as expected, body={body}"
    assert body['error']
    return body
