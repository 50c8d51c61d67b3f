import socket
from http.server import HTTPServer

import pytest

from azure_login.auth.local_server import LocalAuthServer
from azure_login.utils.exceptions import LoginFailureError, LoginTimeoutError

from conftest import callback


class SpyHTTPServer(HTTPServer):
    shutdowns = 0
    closes = 0

    def shutdown(self):
        type(self).shutdowns += 1
        super().shutdown()

    def server_close(self):
        type(self).closes += 1
        super().server_close()


@pytest.fixture
def server():
    server = LocalAuthServer()
    server.start()
    yield server
    server.stop()


def test_uri_uses_localhost_and_ephemeral_port(server):
    assert server.uri.startswith("http://localhost:")
    assert int(server.uri.rsplit(":", 1)[1]) > 0


def test_code_is_captured(server):
    response = callback(server, "code=abc")

    assert response.status_code == 200
    assert "Login successfully" in response.text
    assert server.wait_for_code(5) == "abc"


def test_error_is_reported(server):
    response = callback(server, "error=access_denied&error_description=User+cancelled+login")

    assert response.status_code == 200
    assert "Login failed" in response.text
    assert "User cancelled login" in response.text

    with pytest.raises(LoginFailureError) as exc_info:
        server.wait_for_code(5)
    assert str(exc_info.value) == "access_denied\nReason: User cancelled login"
    assert exc_info.value.error == "access_denied"
    assert not isinstance(exc_info.value, LoginTimeoutError)


def test_error_description_is_escaped(server):
    response = callback(server, "error=bad&error_description=%3Cscript%3E")

    assert "<script>" not in response.text
    assert "&lt;script&gt;" in response.text


def test_stray_requests_do_not_complete_the_login(server):
    assert callback(server, path="/favicon.ico").status_code == 404
    assert callback(server, "state=xyz").status_code == 400

    assert callback(server, "code=abc").status_code == 200
    assert server.wait_for_code(5) == "abc"


def test_only_the_first_callback_counts(server):
    callback(server, "code=first")
    assert callback(server, "code=second").status_code == 400

    assert server.wait_for_code(5) == "first"


def test_timeout_stops_the_listener():
    server = LocalAuthServer()
    server.start()

    with pytest.raises(LoginTimeoutError) as exc_info:
        server.wait_for_code(0.2)

    assert str(exc_info.value).startswith("Cannot proceed with login after waiting for")
    assert not server.is_running


def test_listener_is_torn_down_exactly_once():
    SpyHTTPServer.shutdowns = 0
    SpyHTTPServer.closes = 0
    server = LocalAuthServer(server_class=SpyHTTPServer)
    server.start()

    with pytest.raises(LoginTimeoutError):
        server.wait_for_code(0.1)
    server.stop()
    server.stop()

    assert SpyHTTPServer.shutdowns == 1
    assert SpyHTTPServer.closes == 1


def test_uri_requires_a_started_server():
    with pytest.raises(RuntimeError):
        LocalAuthServer().uri


def test_listener_binds_the_host_it_advertises(server):
    assert server.host == "localhost"
    assert server._server.server_address[0] == socket.gethostbyname("localhost")
    assert callback(server, "code=abc").status_code == 200


def test_custom_host_is_advertised():
    server = LocalAuthServer(host="127.0.0.1")
    server.start()
    try:
        assert server.uri.startswith("http://127.0.0.1:")
        assert callback(server, "code=abc").status_code == 200
        assert server.wait_for_code(5) == "abc"
    finally:
        server.stop()
