import os
import io
import shutil
import pytest
from vidshare import create_app, db as _db

TEST_DB_PATH = os.path.join(os.getcwd(), 'test_vidshare.db')
TEST_UPLOAD_FOLDER = os.path.join(os.getcwd(), 'test_uploads')

# Override the environment for testing before the app is created
os.environ['DATABASE_URL'] = f'sqlite:///{TEST_DB_PATH}'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-with-enough-length'
os.environ['SECRET_KEY'] = 'test-secret-key'
os.environ['UPLOAD_FOLDER'] = TEST_UPLOAD_FOLDER


@pytest.fixture(scope='session')
def app():
    """Session-wide test `Flask` application."""
    app = create_app({'TESTING': True})

    yield app

    # Clean up database and upload folder after test session
    with app.app_context():
        _db.session.remove()
        _db.drop_all()
        _db.engine.dispose()

    if os.path.exists(TEST_UPLOAD_FOLDER):
        shutil.rmtree(TEST_UPLOAD_FOLDER)

    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture(scope='function')
def db(app):
    """Database with a clean schema for every test."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        # Dropping and recreating tables for each test keeps tests isolated
        _db.drop_all()
        _db.create_all()
        for name in os.listdir(TEST_UPLOAD_FOLDER):
            os.remove(os.path.join(TEST_UPLOAD_FOLDER, name))


def register_user(client, username, password='password123'):
    response = client.post('/api/auth/register', json={'username': username, 'password': password})
    assert response.status_code == 201, f"Signup failed. Status: {response.status_code}, Response: {response.data}"
    data = response.get_json()
    return data['token'], data['user']


@pytest.fixture
def auth_data(client, db):
    """Provides a client, access token, and user info for a fresh account."""
    access_token, user_info = register_user(client, 'testuser')
    return client, access_token, user_info


@pytest.fixture
def other_auth(client, db):
    """Access token and user info for a second account."""
    return register_user(client, 'otheruser')


@pytest.fixture
def upload(client):
    """Returns a helper that uploads a small fake video and returns the response."""
    def _upload(access_token, filename='clip.mp4', data=b'fake video data', **fields):
        form = dict(fields)
        form['video'] = (io.BytesIO(data), filename)
        return client.post('/api/upload', data=form, content_type='multipart/form-data',
                           headers={"Authorization": f"Bearer {access_token}"})
    return _upload
