"""Tests for challenge emails and their delivery backends."""
import json

from latter.models import Challenge
from latter.services import notifications
from latter.services.challenges import create_challenge, set_score_and_complete
from latter.services.notifications import (
    ChallengeNotice, MailDeliveryError, notify_challenge, outbox, send,
)


def _challenge(make_player):
    alice = make_player('Alice')
    bob = make_player('Bob')
    return create_challenge(alice.id, bob.id)


def test_notices_carry_subject_and_template():
    assert ChallengeNotice.NEW_CHALLENGE.subject == 'New Challenge on Latter'
    assert ChallengeNotice.NEW_CHALLENGE.template_name == 'mail/new_challenge.html'
    assert ChallengeNotice.CHALLENGE_UPDATED.subject == 'Updated Challenge on Latter'
    assert ChallengeNotice.CHALLENGE_UPDATED.template_name == 'mail/challenge_updated.html'


def test_new_challenge_mail_goes_to_challenged_player(app, make_player):
    challenge = _challenge(make_player)

    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is True

    message = outbox(app)[-1]
    assert message['to'] == 'bob@example.org'
    assert message['from'] == 'alice@example.org'
    assert message['subject'] == 'New Challenge on Latter'
    assert 'Alice has challenged you' in message['html_body']


def test_updated_challenge_mail_includes_score_and_winner(app, make_player):
    challenge = _challenge(make_player)
    set_score_and_complete(challenge.id, 21, 17)

    assert notify_challenge(challenge, ChallengeNotice.CHALLENGE_UPDATED) is True

    body = outbox(app)[-1]['html_body']
    assert '21' in body and '17' in body
    assert 'Winner: <strong>Alice</strong>' in body


def test_send_uses_default_sender_when_from_is_missing(app, make_player):
    challenge = _challenge(make_player)
    assert send('bob@example.org', None, 'Hello', 'mail/new_challenge.html',
                {'challenge': challenge}) is True
    assert outbox(app)[-1]['from'] == app.config['MAIL_DEFAULT_SENDER']


def test_delivery_failure_is_logged_not_raised(app, make_player, monkeypatch, caplog):
    challenge = _challenge(make_player)

    def _fail(*args, **kwargs):
        raise MailDeliveryError('relay down')
    monkeypatch.setitem(notifications._TRANSPORTS, 'memory', _fail)

    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is False
    assert 'relay down' in caplog.text


def test_unexpected_transport_error_is_contained(app, make_player, monkeypatch):
    challenge = _challenge(make_player)

    def _explode(*args, **kwargs):
        raise RuntimeError('boom')
    monkeypatch.setitem(notifications._TRANSPORTS, 'memory', _explode)

    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is False


def test_unknown_backend_drops_mail(app, make_player):
    challenge = _challenge(make_player)
    app.config['MAIL_BACKEND'] = 'pigeon'
    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is False
    assert outbox(app) == []


def test_log_backend_reports_success(app, make_player):
    challenge = _challenge(make_player)
    app.config['MAIL_BACKEND'] = 'log'
    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is True


def test_failed_mail_does_not_undo_challenge(client, app, admin_headers, monkeypatch):
    def _fail(*args, **kwargs):
        raise MailDeliveryError('relay down')
    monkeypatch.setitem(notifications._TRANSPORTS, 'memory', _fail)

    created = client.post('/players', json={'email': 'bob@example.org'}, headers=admin_headers)
    bob_id = json.loads(created.data)['player']['id']

    res = client.post('/challenges', json={'to_player_id': bob_id}, headers=admin_headers)
    assert res.status_code == 201
    data = json.loads(res.data)
    assert data['notified'] is False

    scored = client.post(f"/challenges/{data['challenge']['id']}/score", json={
        'from_player_score': 21, 'to_player_score': 3,
    }, headers=admin_headers)
    assert scored.status_code == 200
    assert json.loads(scored.data)['notified'] is False
    assert Challenge.query.filter_by(completed=True).count() == 1


class _FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


def test_sendgrid_backend_posts_message(app, make_player, monkeypatch):
    challenge = _challenge(make_player)
    app.config['MAIL_BACKEND'] = 'sendgrid'
    app.config['SENDGRID_API_KEY'] = 'SG.test'
    calls = []

    def _post(url, json=None, headers=None, timeout=None):
        calls.append({'url': url, 'json': json, 'headers': headers})
        return _FakeResponse(202)
    monkeypatch.setattr(notifications.requests, 'post', _post)

    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is True
    assert calls[0]['url'] == 'https://api.sendgrid.com/v3/mail/send'
    assert calls[0]['headers'] == {'Authorization': 'Bearer SG.test'}
    assert calls[0]['json']['personalizations'] == [{'to': [{'email': 'bob@example.org'}]}]
    assert calls[0]['json']['subject'] == 'New Challenge on Latter'


def test_sendgrid_backend_failures_return_false(app, make_player, monkeypatch):
    challenge = _challenge(make_player)
    app.config['MAIL_BACKEND'] = 'sendgrid'

    app.config['SENDGRID_API_KEY'] = ''
    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is False

    app.config['SENDGRID_API_KEY'] = 'SG.test'
    monkeypatch.setattr(notifications.requests, 'post', lambda *a, **kw: _FakeResponse(401))
    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is False


def test_smtp_backend_sends_html_message(app, make_player, monkeypatch):
    challenge = _challenge(make_player)
    app.config.update(
        MAIL_BACKEND='smtp', MAIL_SMTP_HOST='mail.test', MAIL_SMTP_PORT=2525,
        MAIL_SMTP_USERNAME='user', MAIL_SMTP_PASSWORD='secret', MAIL_SMTP_USE_TLS=True,
    )
    sessions = []

    class _FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host, self.port = host, port
            self.started_tls = False
            self.credentials = None
            self.sent = []
            sessions.append(self)

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

        def starttls(self):
            self.started_tls = True

        def login(self, username, password):
            self.credentials = (username, password)

        def send_message(self, message):
            self.sent.append(message)

    monkeypatch.setattr(notifications.smtplib, 'SMTP', _FakeSMTP)

    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is True
    smtp = sessions[0]
    assert (smtp.host, smtp.port) == ('mail.test', 2525)
    assert smtp.started_tls is True
    assert smtp.credentials == ('user', 'secret')
    message = smtp.sent[0]
    assert message['To'] == 'bob@example.org'
    assert message['Subject'] == 'New Challenge on Latter'


def test_smtp_connection_error_returns_false(app, make_player, monkeypatch):
    challenge = _challenge(make_player)
    app.config['MAIL_BACKEND'] = 'smtp'

    def _refuse(*args, **kwargs):
        raise ConnectionRefusedError('no server')
    monkeypatch.setattr(notifications.smtplib, 'SMTP', _refuse)

    assert notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE) is False
