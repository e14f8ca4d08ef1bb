import hashlib
import pytest
import requests

from pwnguard.services.breach_client import (
    BreachLookupError,
    BreachLookupServiceError,
    BreachLookupTimeout,
    BreachLookupTransportError,
    LookupOptions,
    PwnedPasswordsClient,
    StaticBreachClient,
)

PASSWORD = 'password'
SHA1 = hashlib.sha1(PASSWORD.encode('utf-8')).hexdigest().upper()
PREFIX, SUFFIX = SHA1[:5], SHA1[5:]


class DummyResp:
    def __init__(self, text='', status_code=200):
        self.text = text
        self.status_code = status_code


def test_query_finds_matching_suffix(monkeypatch):
    calls = {}

    def fake_get(url, headers=None, timeout=None):
        calls['url'] = url
        calls['headers'] = headers
        calls['timeout'] = timeout
        return DummyResp(f'0018A45C4D1DEF81644B54AB7F969B88D65:1\r\n{SUFFIX}:3861493\r\nFFFFF:0')

    monkeypatch.setattr(requests, 'get', fake_get)
    options = LookupOptions(open_timeout=2.0, read_timeout=3.0, user_agent='test-agent')
    count = PwnedPasswordsClient().query(PASSWORD, options)

    assert count == 3861493
    # only the prefix leaves the process
    assert calls['url'] == f'https://api.pwnedpasswords.com/range/{PREFIX}'
    assert calls['url'].rsplit('/', 1)[1] == PREFIX
    assert SUFFIX not in calls['url']
    assert calls['headers']['User-Agent'] == 'test-agent'
    assert calls['headers']['Add-Padding'] == 'true'
    assert calls['timeout'] == (2.0, 3.0)


def test_query_not_found_and_padding_rows(monkeypatch):
    body = '0018A45C4D1DEF81644B54AB7F969B88D65:0\nnot-a-row\n'
    monkeypatch.setattr(requests, 'get', lambda *a, **k: DummyResp(body))
    assert PwnedPasswordsClient().query(PASSWORD, LookupOptions()) == 0


def test_query_lowercase_suffix_matches(monkeypatch):
    monkeypatch.setattr(requests, 'get', lambda *a, **k: DummyResp(f'{SUFFIX.lower()}:12'))
    assert PwnedPasswordsClient().query(PASSWORD, LookupOptions()) == 12


def test_timeout_maps_to_lookup_timeout(monkeypatch):
    monkeypatch.setattr(requests, 'get', lambda *a, **k: (_ for _ in ()).throw(requests.exceptions.ReadTimeout()))
    with pytest.raises(BreachLookupTimeout):
        PwnedPasswordsClient().query(PASSWORD, LookupOptions())


def test_connection_error_maps_to_transport_error(monkeypatch):
    monkeypatch.setattr(requests, 'get', lambda *a, **k: (_ for _ in ()).throw(requests.exceptions.ConnectionError()))
    with pytest.raises(BreachLookupTransportError) as exc:
        PwnedPasswordsClient().query(PASSWORD, LookupOptions())
    assert isinstance(exc.value, BreachLookupError)


@pytest.mark.parametrize('status', [429, 500, 503])
def test_non_200_maps_to_service_error(monkeypatch, status):
    monkeypatch.setattr(requests, 'get', lambda *a, **k: DummyResp('', status_code=status))
    with pytest.raises(BreachLookupServiceError):
        PwnedPasswordsClient().query(PASSWORD, LookupOptions())


def test_malformed_count_maps_to_service_error(monkeypatch):
    monkeypatch.setattr(requests, 'get', lambda *a, **k: DummyResp(f'{SUFFIX}:lots'))
    with pytest.raises(BreachLookupServiceError):
        PwnedPasswordsClient().query(PASSWORD, LookupOptions())


def test_custom_session_is_used():
    class FakeSession:
        def __init__(self):
            self.urls = []

        def get(self, url, headers=None, timeout=None):
            self.urls.append(url)
            return DummyResp(f'{SUFFIX}:5')

    session = FakeSession()
    client = PwnedPasswordsClient(url_template='https://mirror.example/range/{prefix}', session=session)
    assert client.query(PASSWORD, LookupOptions()) == 5
    assert session.urls == [f'https://mirror.example/range/{PREFIX}']


def test_static_client_counts_and_records_queries():
    client = StaticBreachClient({'hunter2': 17}, default=0)
    options = LookupOptions(user_agent='x')
    assert client.query('hunter2', options) == 17
    assert client.query('other', options) == 0
    assert client.queries == ['hunter2', 'other']
    assert client.last_options is options


def test_static_client_raises_configured_error():
    client = StaticBreachClient(error=BreachLookupTimeout('slow'))
    with pytest.raises(BreachLookupTimeout):
        client.query('anything', LookupOptions())
    assert client.queries == ['anything']
