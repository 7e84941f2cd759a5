from functools import wraps
from flask import session, redirect, url_for


def login_user(user):
    session.clear()
    session['user_id'] = user['id']
    session['user_name'] = user['name']


def logout_user():
    session.clear()


def current_user_id():
    return session.get('user_id')


def login_required(fn):
    """Send visitors without a session to the login page."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if current_user_id() is None:
            return redirect(url_for('auth.login'))
        return fn(*args, **kwargs)
    return wrapper
