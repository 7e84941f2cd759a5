import mysql.connector
from flask import Blueprint, render_template, request, redirect, url_for, current_app, flash, abort
from auth_utils import login_required, current_user_id
from commands import CreateFee, RecordPayment, parse
from finance import (
    PENDING, ValidationError, MissingPrerequisiteError,
    balance_due, fee_status, ledger_totals, record_payment,
)
from store import get_student, fetch_owned

fees_bp = Blueprint('fees', __name__, url_prefix='/fees')

STUDENT_REQUIRED = "Student Record Required: please complete your student profile to manage fees."


def require_student(cur):
    student = get_student(cur, current_user_id())
    if not student:
        raise MissingPrerequisiteError(STUDENT_REQUIRED)
    return student


@fees_bp.route('/')
@login_required
def index():
    student = None
    fees, categories = [], []

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            student = get_student(cur, current_user_id())
            if student:
                cur.execute("""
                    SELECT f.*, fc.name AS category_name, fc.description AS category_description
                    FROM fees f
                    LEFT JOIN fee_categories fc ON fc.id = f.category_id
                    WHERE f.student_id=%s
                    ORDER BY f.due_date DESC
                """, (student['id'],))
                fees = cur.fetchall()

            cur.execute("SELECT id, name, description, is_recurring FROM fee_categories ORDER BY name")
            categories = cur.fetchall()
    except mysql.connector.Error:
        current_app.logger.exception("Error loading fees")
        flash("Failed to load fees.", "error")
    finally:
        conn.close()

    if student is None:
        flash(STUDENT_REQUIRED, "error")

    for fee in fees:
        fee['status'] = fee_status(fee)
        fee['balance_due'] = balance_due(fee)

    return render_template(
        'fees.html',
        fees=fees,
        categories=categories,
        has_student=student is not None,
        ledger=ledger_totals(fees),
    )


@fees_bp.route('/add', methods=['POST'])
@login_required
def add_fee():
    try:
        command = parse(CreateFee, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('fees.index'))

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            student = require_student(cur)
            cur.execute(
                "INSERT INTO fees (student_id, category_id, amount, paid_amount, due_date, notes, status) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s)",
                (student['id'], command.category_id, command.amount, 0,
                 command.due_date, command.notes, PENDING)
            )
            conn.commit()
    except MissingPrerequisiteError as exc:
        flash(str(exc), "error")
        return redirect(url_for('profile.index'))
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error creating fee")
        flash("Failed to create fee record.", "error")
        return redirect(url_for('fees.index'))
    finally:
        conn.close()

    flash("Fee record created successfully.", "success")
    return redirect(url_for('fees.index'))


@fees_bp.route('/<int:id>/pay', methods=['POST'])
@login_required
def pay(id):
    try:
        command = parse(RecordPayment, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('fees.index'))

    cache = current_app.record_cache
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            student = require_student(cur)
            fee = fetch_owned(cur, cache, 'fees', id, student['id'], fresh=True)
            if fee is None:
                abort(404)
            updated = record_payment(fee, command.amount, command.payment_method, command.notes)
            cur.execute(
                "UPDATE fees SET paid_amount=%s, status=%s, paid_date=%s, payment_method=%s, notes=%s "
                "WHERE id=%s AND student_id=%s",
                (updated['paid_amount'], updated['status'], updated['paid_date'],
                 updated['payment_method'], updated['notes'], id, student['id'])
            )
            conn.commit()
            cache.invalidate('fees', id)
    except MissingPrerequisiteError as exc:
        flash(str(exc), "error")
        return redirect(url_for('profile.index'))
    except mysql.connector.Error:
        conn.rollback()
        cache.invalidate('fees', id)
        current_app.logger.exception("Error recording payment for fee %s", id)
        flash("Failed to record payment.", "error")
        return redirect(url_for('fees.index'))
    finally:
        conn.close()

    current_app.logger.info("fee %s payment recorded, status %s", id, updated['status'])
    flash("Payment recorded successfully.", "success")
    return redirect(url_for('fees.index'))


@fees_bp.route('/<int:id>/delete', methods=['POST'])
@login_required
def delete_fee(id):
    cache = current_app.record_cache
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            student = require_student(cur)
            cur.execute("DELETE FROM fees WHERE id=%s AND student_id=%s", (id, student['id']))
            if cur.rowcount == 0:
                abort(404)
            conn.commit()
            cache.invalidate('fees', id)
    except MissingPrerequisiteError as exc:
        flash(str(exc), "error")
        return redirect(url_for('profile.index'))
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error deleting fee %s", id)
        flash("Failed to delete fee record.", "error")
        return redirect(url_for('fees.index'))
    finally:
        conn.close()

    flash("Fee record deleted successfully.", "success")
    return redirect(url_for('fees.index'))
