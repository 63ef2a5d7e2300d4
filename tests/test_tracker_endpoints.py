"""Tests for the tracker HTTP API."""

import pytest
from fastapi.testclient import TestClient

from tracker.main import create_app


@pytest.fixture
def clock_app(tmp_path, clock):
    return create_app(
        database_path=str(tmp_path / "tracker.db"),
        staleness_seconds=60,
        sweep_interval=3600,
        clock=clock,
    )


@pytest.fixture
def client(clock_app):
    """Create FastAPI test client; entering it runs startup (schema creation)."""
    with TestClient(clock_app) as test_client:
        yield test_client


def _register(client, username="alice", password="secret", ip="10.0.0.1", port=6001):
    return client.post('/register', json={
        'username': username, 'password': password, 'ip': ip, 'port': port
    })


def _login(client, username="alice", password="secret", ip="10.0.0.1", port=6001):
    return client.post('/login', json={
        'username': username, 'password': password, 'ip': ip, 'port': port
    })


def _share(client, username, filenames, ip="10.0.0.1", port=6001):
    return client.post('/share_files', json={
        'username': username, 'filenames': filenames, 'ip': ip, 'port': port
    })


def test_root_endpoint(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['status'] == 'running'


def test_health_reports_monitor(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json()['liveness_monitor'] is True


def test_request_id_header(client):
    response = client.get('/')
    assert response.headers.get('X-Request-ID')


class TestRegister:
    def test_register_created(self, client):
        response = _register(client)
        assert response.status_code == 201
        assert 'successful' in response.json()['message']

    def test_register_duplicate(self, client):
        _register(client)
        response = _register(client, password='other')
        assert response.status_code == 409
        assert response.json()['code'] == 'PEER_ALREADY_EXISTS'

    def test_register_missing_field(self, client):
        response = client.post('/register', json={'username': 'alice', 'password': 'secret'})
        assert response.status_code == 400
        data = response.json()
        assert data['code'] == 'VALIDATION_ERROR'
        assert 'ip' in data['detail']

    def test_register_empty_username(self, client):
        response = _register(client, username='')
        assert response.status_code == 400

    def test_register_invalid_port(self, client):
        response = _register(client, port=70000)
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'


class TestLogin:
    def test_login_success(self, client):
        _register(client)
        response = _login(client)
        assert response.status_code == 200
        assert response.json()['username'] == 'alice'

    def test_login_wrong_password(self, client):
        _register(client)
        response = _login(client, password='wrong')
        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_CREDENTIALS'

    def test_login_unknown_user(self, client):
        response = _login(client, username='ghost')
        assert response.status_code == 404
        assert response.json()['code'] == 'PEER_NOT_FOUND'


class TestHeartbeatAndDisconnect:
    def test_heartbeat(self, client):
        _register(client)
        response = client.post('/heartbeat', json={'username': 'alice', 'ip': '10.0.0.1', 'port': 6001})
        assert response.status_code == 200

    def test_heartbeat_unknown(self, client):
        response = client.post('/heartbeat', json={'username': 'ghost', 'ip': '10.0.0.1', 'port': 6001})
        assert response.status_code == 404

    def test_disconnect_twice(self, client):
        _register(client)
        first = client.post('/disconnect', json={'username': 'alice'})
        second = client.post('/disconnect', json={'username': 'alice'})

        assert first.status_code == 200
        assert first.json()['removed'] is True
        assert second.status_code == 200
        assert second.json()['removed'] is False


class TestFiles:
    def test_share_and_list(self, client):
        _register(client)
        response = _share(client, 'alice', ['a.txt', 'b.txt'])
        assert response.status_code == 200
        assert response.json()['count'] == 2

        files = client.get('/files').json()['files']
        assert [f['filename'] for f in files] == ['a.txt', 'b.txt']
        assert files[0]['owner'] == 'alice'
        assert files[0]['address'] == {'ip': '10.0.0.1', 'port': 6001}
        assert isinstance(files[0]['shared_time'], float)

    def test_share_requires_login(self, client):
        response = _share(client, 'ghost', ['a.txt'])
        assert response.status_code == 404
        assert response.json()['code'] == 'PEER_NOT_FOUND'

    def test_share_rejects_path_names(self, client):
        _register(client)
        response = _share(client, 'alice', ['../secret'])
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_share_at_other_address_rejected(self, client):
        _register(client)
        response = _share(client, 'alice', ['a.txt'], ip='10.0.0.9', port=9999)
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'
        assert client.get('/files').json()['files'] == []

    def test_share_empty_list_clears(self, client):
        _register(client)
        _share(client, 'alice', ['a.txt'])
        response = _share(client, 'alice', [])
        assert response.json()['count'] == 0
        assert client.get('/files').json()['files'] == []

    def test_search_by_filename_and_owner(self, client):
        _register(client, 'alice')
        _register(client, 'bob', ip='10.0.0.2', port=6002)
        _share(client, 'alice', ['report.pdf', 'notes.txt'])
        _share(client, 'bob', ['report.pdf'], ip='10.0.0.2', port=6002)

        by_name = client.get('/search_files', params={'filename': 'report'}).json()['files']
        assert [(f['filename'], f['owner']) for f in by_name] == [
            ('report.pdf', 'alice'),
            ('report.pdf', 'bob'),
        ]

        by_both = client.get('/search_files', params={'filename': 'report', 'username': 'bo'}).json()['files']
        assert [f['owner'] for f in by_both] == ['bob']

    def test_files_and_search_files_agree(self, client):
        _register(client)
        _share(client, 'alice', ['a.txt'])
        assert client.get('/files').json() == client.get('/search_files').json()

    def test_stale_peer_hidden(self, client, clock):
        _register(client, 'alice')
        _register(client, 'bob', ip='10.0.0.2', port=6002)
        _share(client, 'alice', ['a.txt'])
        _share(client, 'bob', ['b.txt'], ip='10.0.0.2', port=6002)

        clock.advance(50)
        client.post('/heartbeat', json={'username': 'alice', 'ip': '10.0.0.1', 'port': 6001})
        clock.advance(20)

        files = client.get('/files').json()['files']
        assert [f['owner'] for f in files] == ['alice']

        peers = client.get('/peers').json()['peers']
        assert [p['username'] for p in peers] == ['alice']

    def test_disconnect_hides_files(self, client):
        _register(client)
        _share(client, 'alice', ['a.txt'])
        client.post('/disconnect', json={'username': 'alice'})
        assert client.get('/files').json()['files'] == []


def test_openapi_documents_error_bodies(client):
    schema = client.get('/openapi.json').json()
    register = schema['paths']['/register']['post']['responses']
    assert {'201', '400', '409'} <= set(register)
    assert 'ErrorResponse' in schema['components']['schemas']
