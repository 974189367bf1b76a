import pytest
from latter.app import create_app, db


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(client):
    """Bootstrap the Admin player, log in, and return auth headers."""
    client.get('/setup')
    res = client.post('/login', json={'email': 'admin@example.org'})
    token = res.get_json()['token']
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}


@pytest.fixture
def make_player(app):
    """Create a player directly through the service layer."""
    from latter.services.players import create_player

    def _make(name, email=None):
        return create_player({'name': name, 'email': email or f'{name.lower()}@example.org'})
    return _make
