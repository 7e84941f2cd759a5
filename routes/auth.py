import re
import mysql.connector
from flask import Blueprint, render_template, request, redirect, url_for, current_app, flash
from werkzeug.security import generate_password_hash, check_password_hash
from auth_utils import login_user, logout_user, current_user_id

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MAX_NAME_LENGTH = 100


def signup_error(name, email, password):
    if not name or not email or not password:
        return "All fields are required."
    if len(name) > MAX_NAME_LENGTH:
        return f"Name must be at most {MAX_NAME_LENGTH} characters."
    if not EMAIL_RE.match(email):
        return "Enter a valid email address."
    min_length = current_app.config['MIN_PASSWORD_LENGTH']
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters."
    return None


@auth_bp.route('/signup', methods=['GET', 'POST'])
def signup():
    if request.method == 'POST':
        name = request.form.get('name', '').strip()
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')

        error = signup_error(name, email, password)
        if error:
            flash(error, "error")
            return redirect(url_for('auth.signup'))

        conn = current_app.db_pool.get_connection()
        try:
            with conn.cursor(dictionary=True) as cur:
                cur.execute("SELECT id FROM users WHERE email=%s", (email,))
                if cur.fetchone():
                    return "Email already exists", 400
                pw_hash = generate_password_hash(password)
                cur.execute(
                    "INSERT INTO users (name, email, password_hash) VALUES (%s, %s, %s)",
                    (name, email, pw_hash)
                )
                conn.commit()
        except mysql.connector.Error:
            conn.rollback()
            current_app.logger.exception("Error creating account for %s", email)
            flash("Failed to create account.", "error")
            return redirect(url_for('auth.signup'))
        finally:
            conn.close()

        current_app.logger.info("account created for %s", email)
        flash("Account created. Please log in.", "success")
        return redirect(url_for('auth.login'))

    return render_template('auth/signup.html')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')

        conn = current_app.db_pool.get_connection()
        try:
            with conn.cursor(dictionary=True) as cur:
                cur.execute("SELECT id, name, email, password_hash FROM users WHERE email=%s", (email,))
                user = cur.fetchone()
        except mysql.connector.Error:
            current_app.logger.exception("Error logging in %s", email)
            flash("Failed to log in.", "error")
            return redirect(url_for('auth.login'))
        finally:
            conn.close()

        if not user or not check_password_hash(user['password_hash'], password):
            flash("Invalid credentials. Want to sign up?", "error")
            return redirect(url_for('auth.login'))

        login_user(user)
        return redirect(url_for('dashboard.index'))

    if current_user_id() is not None:
        return redirect(url_for('dashboard.index'))
    return render_template('auth/login.html')


@auth_bp.route('/logout')
def logout():
    logout_user()
    return redirect(url_for('auth.login'))
