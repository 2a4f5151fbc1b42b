import logging
import os
import sys
from datetime import datetime, timedelta, timezone

import jwt

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from glazier import create_app, db
from glazier.auth.utils import generate_token, resolve_session, verify_password
from glazier.models import User


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def signup(client, email='owner@acmeglass.com', password='s3cret-pass'):
    return client.post('/auth/register', json={
        'email': email,
        'password': password,
        'companyName': 'Acme Glass',
        'companyPhone': '555-0100',
    })


def test_register_sets_session_cookie():
    app = setup_app()
    client = app.test_client()
    resp = signup(client)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['user']['email'] == 'owner@acmeglass.com'
    assert body['user']['companyName'] == 'Acme Glass'
    assert 'passwordHash' not in body['user']

    cookie = next(h for h in resp.headers.getlist('Set-Cookie') if h.startswith('auth-token='))
    assert 'HttpOnly' in cookie
    assert 'SameSite=Lax' in cookie

    me = client.get('/auth/me')
    assert me.status_code == 200
    assert me.get_json()['user']['email'] == 'owner@acmeglass.com'


def test_password_is_hashed():
    app = setup_app()
    signup(app.test_client())
    with app.app_context():
        user = User.query.one()
        assert user.password_hash != 's3cret-pass'
        assert verify_password('s3cret-pass', user.password_hash)
        assert not verify_password('wrong', user.password_hash)


def test_register_duplicate_email():
    app = setup_app()
    assert signup(app.test_client()).status_code == 200
    resp = signup(app.test_client(), email='Owner@AcmeGlass.com ')
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Email already registered'}


def test_register_missing_fields():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/auth/register', json={'email': 'a@b.com', 'password': 'x'})
    assert resp.status_code == 400
    assert 'companyName' in resp.get_json()['error']
    resp = client.post('/auth/register', json={'password': 'x', 'companyName': 'C'})
    assert resp.status_code == 400
    assert 'email' in resp.get_json()['error']


def test_login_failures_are_indistinguishable():
    app = setup_app()
    signup(app.test_client())
    client = app.test_client()
    wrong_pw = client.post('/auth/login', json={'email': 'owner@acmeglass.com', 'password': 'nope'})
    unknown = client.post('/auth/login', json={'email': 'ghost@acmeglass.com', 'password': 'nope'})
    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.get_json() == unknown.get_json() == {'error': 'Invalid credentials'}
    assert client.get('/auth/me').status_code == 401


def test_login_success():
    app = setup_app()
    signup(app.test_client())
    client = app.test_client()
    resp = client.post('/auth/login', json={'email': 'owner@acmeglass.com', 'password': 's3cret-pass'})
    assert resp.status_code == 200
    assert resp.get_json()['user']['companyName'] == 'Acme Glass'
    assert client.get('/auth/me').status_code == 200


def test_login_requires_both_fields():
    app = setup_app()
    resp = app.test_client().post('/auth/login', json={'email': 'owner@acmeglass.com'})
    assert resp.status_code == 400


def test_logout_clears_cookie():
    app = setup_app()
    client = app.test_client()
    signup(client)
    assert client.post('/auth/logout').status_code == 200
    assert client.get('/auth/me').status_code == 401


def test_bad_tokens_resolve_to_nobody():
    app = setup_app()
    signup(app.test_client())
    with app.app_context():
        user = User.query.one()
        token = generate_token(user.id)
        assert resolve_session(token).id == user.id

        tampered = token[:-4] + ('AAAA' if not token.endswith('AAAA') else 'BBBB')
        expired = jwt.encode(
            {'sub': str(user.id), 'exp': datetime.now(timezone.utc) - timedelta(seconds=1)},
            app.config['JWT_SECRET'],
            algorithm='HS256',
        )
        foreign = jwt.encode(
            {'sub': str(user.id), 'exp': datetime.now(timezone.utc) + timedelta(days=1)},
            'some-other-secret',
            algorithm='HS256',
        )
        for bad in (None, '', 'garbage', tampered, expired, foreign):
            assert resolve_session(bad) is None

    client = app.test_client()
    ok = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert ok.status_code == 200
    for bad in ('garbage', tampered, expired):
        resp = client.get('/auth/me', headers={'Authorization': f'Bearer {bad}'})
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'Unauthorized'}


def test_token_lifetime_is_seven_days():
    app = setup_app()
    signup(app.test_client())
    with app.app_context():
        token = generate_token(User.query.one().id)
        claims = jwt.decode(token, app.config['JWT_SECRET'], algorithms=['HS256'])
        assert claims['exp'] - claims['iat'] == 7 * 24 * 60 * 60


def test_profile_edit():
    app = setup_app()
    client = app.test_client()
    signup(client)
    resp = client.put('/auth/profile', json={
        'companyName': 'Acme Glass & Door',
        'companyAddress': '1 Pane St',
        'logoUrl': 'https://example.com/logo.png',
    })
    assert resp.status_code == 200
    user = resp.get_json()['user']
    assert user['companyName'] == 'Acme Glass & Door'
    assert user['companyAddress'] == '1 Pane St'
    assert user['companyPhone'] == '555-0100'

    resp = client.put('/auth/profile', json={'companyName': '  '})
    assert resp.status_code == 400
    assert client.get('/auth/me').get_json()['user']['companyName'] == 'Acme Glass & Door'


def test_non_string_password_is_rejected():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/auth/register', json={
        'email': 'owner@acmeglass.com', 'password': 12345678, 'companyName': 'Acme Glass',
    })
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'password must be a string'}
    with app.app_context():
        assert User.query.count() == 0

    assert signup(client).status_code == 200
    known = client.post('/auth/login', json={'email': 'owner@acmeglass.com', 'password': 123})
    unknown = client.post('/auth/login', json={'email': 'ghost@acmeglass.com', 'password': 123})
    assert known.status_code == unknown.status_code == 400
    assert known.get_json() == unknown.get_json()


def test_body_must_be_json_object():
    app = setup_app()
    client = app.test_client()
    for path in ('/auth/register', '/auth/login'):
        resp = client.post(path, json=[{'email': 'owner@acmeglass.com', 'password': 'pw'}])
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Request body must be a JSON object'}

    signup(client)
    resp = client.put('/auth/profile', json='Acme')
    assert resp.status_code == 400
    assert client.get('/auth/me').get_json()['user']['companyName'] == 'Acme Glass'


def test_default_secret_warns_outside_development(monkeypatch, caplog):
    from glazier.config import DEFAULT_SECRET, ProdConfig

    monkeypatch.setattr(ProdConfig, 'SECRET_KEY', DEFAULT_SECRET)
    monkeypatch.setattr(ProdConfig, 'JWT_SECRET', DEFAULT_SECRET)
    monkeypatch.setattr(ProdConfig, 'SQLALCHEMY_DATABASE_URI', 'sqlite:///:memory:')
    with caplog.at_level(logging.WARNING):
        create_app('production')
    assert any('JWT_SECRET' in r.getMessage() for r in caplog.records)

    caplog.clear()
    monkeypatch.setattr(ProdConfig, 'JWT_SECRET', 'a-real-secret')
    with caplog.at_level(logging.WARNING):
        create_app('production')
    assert not any('JWT_SECRET' in r.getMessage() for r in caplog.records)
