import mysql.connector
from flask import Blueprint, render_template, redirect, url_for, current_app, flash
from auth_utils import login_required, current_user_id
from finance import aggregate_fees, total_budget, total_expenses, budget_usage, fee_status
from store import get_student

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='')

RECENT_LIMIT = 5


@dashboard_bp.route('/')
def landing():
    if current_user_id() is not None:
        return redirect(url_for('dashboard.index'))
    return render_template('landing.html')


@dashboard_bp.route('/dashboard')
@login_required
def index():
    user_id = current_user_id()
    fees, expenses, budgets = [], [], []

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            student = get_student(cur, user_id)
            if student:
                cur.execute("""
                    SELECT f.*, fc.name AS category_name
                    FROM fees f
                    LEFT JOIN fee_categories fc ON fc.id = f.category_id
                    WHERE f.student_id=%s
                    ORDER BY f.due_date DESC
                """, (student['id'],))
                fees = cur.fetchall()

            cur.execute("""
                SELECT e.*, ec.name AS category_name
                FROM expenses e
                LEFT JOIN expense_categories ec ON ec.id = e.category_id
                WHERE e.created_by=%s
                ORDER BY e.date DESC
            """, (user_id,))
            expenses = cur.fetchall()

            cur.execute("SELECT * FROM budgets WHERE created_by=%s", (user_id,))
            budgets = cur.fetchall()
    except mysql.connector.Error:
        current_app.logger.exception("Error loading dashboard data")
        flash("Failed to load dashboard data.", "error")
    finally:
        conn.close()

    summary = aggregate_fees(fees)
    spent = total_expenses(expenses)
    monthly_budget = total_budget(budgets)

    for fee in fees:
        fee['status'] = fee_status(fee)

    return render_template(
        "dashboard.html",
        summary=summary,
        total_expenses=spent,
        monthly_budget=monthly_budget,
        budget_used=spent,
        budget_usage=budget_usage(spent, monthly_budget),
        recent_fees=fees[:RECENT_LIMIT],
        recent_expenses=expenses[:RECENT_LIMIT],
    )
