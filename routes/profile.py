import mysql.connector
from flask import Blueprint, render_template, request, redirect, url_for, current_app, session, flash
from auth_utils import login_required, current_user_id
from commands import SaveProfile, parse
from finance import ValidationError
from store import get_student

profile_bp = Blueprint('profile', __name__, url_prefix='/profile')

PROFILE_FIELDS = ('full_name', 'email', 'phone', 'address')
STUDENT_FIELDS = ('student_id', 'grade_level', 'class_section',
                  'parent_guardian_name', 'parent_guardian_phone')


def load_profile(cur, user_id):
    cur.execute("SELECT * FROM profiles WHERE user_id=%s", (user_id,))
    return cur.fetchone()


def upsert(cur, table, existing, values, user_id):
    """Update ``existing`` or create the row on first save."""
    columns = list(values)
    if existing:
        assignments = ", ".join(f"{c}=%s" for c in columns)
        cur.execute(
            f"UPDATE {table} SET {assignments} WHERE id=%s AND user_id=%s",
            [values[c] for c in columns] + [existing['id'], user_id]
        )
    else:
        placeholders = ", ".join(["%s"] * (len(columns) + 1))
        cur.execute(
            f"INSERT INTO {table} (user_id, {', '.join(columns)}) VALUES ({placeholders})",
            [user_id] + [values[c] for c in columns]
        )


@profile_bp.route('/', methods=['GET'])
@login_required
def index():
    user_id = current_user_id()
    profile = student = None
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            profile = load_profile(cur, user_id)
            student = get_student(cur, user_id)
    except mysql.connector.Error:
        current_app.logger.exception("Error loading profile")
        flash("Failed to load profile.", "error")
    finally:
        conn.close()

    form = {field: '' for field in PROFILE_FIELDS + STUDENT_FIELDS}
    for record, fields in ((profile, PROFILE_FIELDS), (student, STUDENT_FIELDS)):
        if record:
            form.update((f, record.get(f) or '') for f in fields)
    return render_template('profile.html', profile=profile, student=student, form=form)


@profile_bp.route('/', methods=['POST'])
@login_required
def save():
    try:
        command = parse(SaveProfile, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('profile.index'))

    user_id = current_user_id()
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            profile_values = {f: getattr(command, f) for f in PROFILE_FIELDS}
            profile_values['role'] = 'student'
            upsert(cur, 'profiles', load_profile(cur, user_id), profile_values, user_id)
            upsert(cur, 'students', get_student(cur, user_id),
                   {f: getattr(command, f) for f in STUDENT_FIELDS}, user_id)
            conn.commit()
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error saving profile")
        flash("Failed to update profile.", "error")
        return redirect(url_for('profile.index'))
    finally:
        conn.close()

    session['user_name'] = command.full_name
    flash("Profile updated successfully.", "success")
    return redirect(url_for('profile.index'))
