"""
Test suite for authentication routes.
Tests cover signup, login and logout.
"""

import pytest
import os
import sys
from unittest.mock import MagicMock
import mysql.connector
from werkzeug.security import generate_password_hash

# Ensure the project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


def make_mock_connection():
    """Create a mock MySQL connection with cursor context manager."""
    conn = MagicMock()
    cursor = MagicMock()
    cursor.__enter__ = MagicMock(return_value=cursor)
    cursor.__exit__ = MagicMock(return_value=False)
    conn.cursor.return_value = cursor
    return conn, cursor


def login_session(client, user_id=1, user_name='Test User'):
    """Helper to set up a logged-in session."""
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['user_name'] = user_name


class TestSignup:
    """Test user registration."""

    def test_signup_page_renders(self, client):
        response = client.get('/auth/signup')
        assert response.status_code == 200
        assert b'Sign Up' in response.data

    def test_signup_valid_user(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = None
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/signup', data={
            'name': 'New User',
            'email': 'NewUser@Example.com',
            'password': 'securepassword123',
        })

        assert response.status_code == 302
        assert '/auth/login' in response.headers.get('Location', '')
        sql, params = cursor.execute.call_args_list[-1][0]
        assert sql.startswith("INSERT INTO users")
        assert params[1] == 'newuser@example.com'
        assert params[2] != 'securepassword123'
        conn.commit.assert_called_once()
        conn.close.assert_called_once()

    def test_signup_duplicate_email(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {'id': 1}
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/signup', data={
            'name': 'Another User',
            'email': 'existing@example.com',
            'password': 'securepassword123',
        })

        assert response.status_code == 400
        conn.commit.assert_not_called()

    @pytest.mark.parametrize("form", [
        {'name': 'Test User', 'email': 'test@example.com', 'password': 'short'},
        {'name': 'Test User', 'email': 'not-an-email', 'password': 'password12345'},
        {'name': 'A' * 101, 'email': 'test@example.com', 'password': 'password12345'},
        {'name': '', 'email': 'test@example.com', 'password': 'password12345'},
    ])
    def test_signup_invalid_input_redirects_back(self, client_no_csrf, app_no_csrf, form):
        response = client_no_csrf.post('/auth/signup', data=form)
        assert response.status_code == 302
        assert '/auth/signup' in response.headers.get('Location', '')
        app_no_csrf.db_pool.get_connection.assert_not_called()

    def test_signup_store_failure(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = None
        cursor.execute.side_effect = [None, mysql.connector.Error("insert failed")]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/signup', data={
            'name': 'New User', 'email': 'new@example.com', 'password': 'password12345',
        }, follow_redirects=True)

        assert b'Failed to create account.' in response.data
        conn.rollback.assert_called_once()


class TestLogin:
    """Test user login."""

    def test_login_page_renders(self, client):
        response = client.get('/auth/login')
        assert response.status_code == 200

    def test_login_valid_credentials(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {
            'id': 1, 'name': 'Test User', 'email': 'test@example.com',
            'password_hash': generate_password_hash('correctpassword'),
        }
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/login', data={
            'email': 'Test@Example.com',
            'password': 'correctpassword',
        })

        assert response.status_code == 302
        assert '/dashboard' in response.headers.get('Location', '')
        with client_no_csrf.session_transaction() as sess:
            assert sess['user_id'] == 1
            assert sess['user_name'] == 'Test User'
        assert cursor.execute.call_args[0][1] == ('test@example.com',)

    def test_login_invalid_password(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {
            'id': 1, 'name': 'Test User', 'email': 'test@example.com',
            'password_hash': generate_password_hash('correctpassword'),
        }
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/login', data={
            'email': 'test@example.com', 'password': 'wrongpassword',
        }, follow_redirects=True)

        assert b'Invalid credentials' in response.data
        with client_no_csrf.session_transaction() as sess:
            assert 'user_id' not in sess

    def test_login_nonexistent_user(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = None
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/login', data={
            'email': 'nobody@example.com', 'password': 'whatever123',
        })

        assert response.status_code == 302
        assert '/auth/login' in response.headers.get('Location', '')

    def test_login_store_failure_redirects_with_flash(self, client_no_csrf, app_no_csrf):
        conn, cursor = make_mock_connection()
        cursor.execute.side_effect = mysql.connector.Error("server has gone away")
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/auth/login', data={
            'email': 'test@example.com', 'password': 'whatever123',
        })

        assert response.status_code == 302
        assert '/auth/login' in response.headers.get('Location', '')
        conn.close.assert_called_once()
        with client_no_csrf.session_transaction() as sess:
            assert ('error', 'Failed to log in.') in sess['_flashes']
            assert 'user_id' not in sess

    def test_login_page_redirects_when_signed_in(self, client_no_csrf):
        login_session(client_no_csrf)
        response = client_no_csrf.get('/auth/login')
        assert response.status_code == 302
        assert '/dashboard' in response.headers.get('Location', '')


class TestLogout:
    """Test user logout."""

    def test_logout_clears_session(self, client_no_csrf):
        login_session(client_no_csrf)

        response = client_no_csrf.get('/auth/logout')

        assert response.status_code == 302
        assert '/auth/login' in response.headers.get('Location', '')
        with client_no_csrf.session_transaction() as sess:
            assert 'user_id' not in sess
