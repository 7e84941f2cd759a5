import mysql.connector
from flask import Blueprint, render_template, request, redirect, url_for, current_app, flash, abort
from auth_utils import login_required, current_user_id
from commands import CreateExpense, SetBudget, parse
from finance import (
    DataError, ValidationError,
    budget_consumption, budget_usage, total_budget, total_expenses,
)
from store import fetch_owned

expenses_bp = Blueprint('expenses', __name__, url_prefix='/expenses')


def budget_rows(budgets, expenses):
    rows = []
    for budget in budgets:
        row = dict(budget)
        try:
            row['consumption'] = budget_consumption(budget, expenses)
        except DataError as exc:
            current_app.logger.warning("%s", exc)
            flash(f"Budget for {budget.get('category_name') or 'a category'} has an invalid amount.", "error")
            row['consumption'] = None
        rows.append(row)
    return rows


@expenses_bp.route('/')
@login_required
def index():
    user_id = current_user_id()
    expenses, categories, budgets = [], [], []

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute("""
                SELECT e.*, ec.name AS category_name, ec.color AS category_color
                FROM expenses e
                LEFT JOIN expense_categories ec ON ec.id = e.category_id
                WHERE e.created_by=%s
                ORDER BY e.date DESC
            """, (user_id,))
            expenses = cur.fetchall()

            cur.execute("SELECT id, name, description, color FROM expense_categories ORDER BY name")
            categories = cur.fetchall()

            cur.execute("""
                SELECT b.*, ec.name AS category_name, ec.color AS category_color
                FROM budgets b
                LEFT JOIN expense_categories ec ON ec.id = b.category_id
                WHERE b.created_by=%s
                ORDER BY b.start_date DESC
            """, (user_id,))
            budgets = cur.fetchall()
    except mysql.connector.Error:
        current_app.logger.exception("Error loading expenses")
        flash("Failed to load expenses.", "error")
    finally:
        conn.close()

    spent = total_expenses(expenses)
    allocated = total_budget(budgets)
    return render_template(
        'expenses.html',
        expenses=expenses,
        categories=categories,
        budgets=budget_rows(budgets, expenses),
        total_expenses=spent,
        total_budget=allocated,
        budget_usage=budget_usage(spent, allocated),
    )


def write_expense(sql, params, failure, success, record_id=None):
    cache = current_app.record_cache
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            if record_id is not None and fetch_owned(cur, cache, 'expenses', record_id, current_user_id()) is None:
                abort(404)
            cur.execute(sql, params)
            conn.commit()
            if record_id is not None:
                cache.invalidate('expenses', record_id)
    except mysql.connector.Error:
        conn.rollback()
        if record_id is not None:
            cache.invalidate('expenses', record_id)
        current_app.logger.exception(failure)
        flash(failure + ".", "error")
        return redirect(url_for('expenses.index'))
    finally:
        conn.close()

    flash(success, "success")
    return redirect(url_for('expenses.index'))


@expenses_bp.route('/add', methods=['POST'])
@login_required
def add_expense():
    try:
        command = parse(CreateExpense, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('expenses.index'))

    return write_expense(
        "INSERT INTO expenses (title, description, category_id, amount, date, payment_method, created_by) "
        "VALUES (%s, %s, %s, %s, %s, %s, %s)",
        (command.title, command.description, command.category_id, command.amount,
         command.date, command.payment_method, current_user_id()),
        "Failed to create expense",
        "Expense created successfully.",
    )


@expenses_bp.route('/edit/<int:id>', methods=['POST'])
@login_required
def edit_expense(id):
    try:
        command = parse(CreateExpense, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('expenses.index'))

    user_id = current_user_id()
    return write_expense(
        "UPDATE expenses SET title=%s, description=%s, category_id=%s, amount=%s, date=%s, payment_method=%s "
        "WHERE id=%s AND created_by=%s",
        (command.title, command.description, command.category_id, command.amount,
         command.date, command.payment_method, id, user_id),
        "Failed to update expense",
        "Expense updated successfully.",
        record_id=id,
    )


@expenses_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete_expense(id):
    return write_expense(
        "DELETE FROM expenses WHERE id=%s AND created_by=%s",
        (id, current_user_id()),
        "Failed to delete expense",
        "Expense deleted successfully.",
        record_id=id,
    )


@expenses_bp.route('/budgets/add', methods=['POST'])
@login_required
def add_budget():
    try:
        command = parse(SetBudget, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('expenses.index'))

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(
                "INSERT INTO budgets (category_id, amount, period, start_date, end_date, created_by) "
                "VALUES (%s, %s, %s, %s, %s, %s)",
                (command.category_id, command.amount, command.period,
                 command.start_date, command.end_date, current_user_id())
            )
            conn.commit()
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error creating budget")
        flash("Failed to create budget.", "error")
        return redirect(url_for('expenses.index'))
    finally:
        conn.close()

    flash("Budget created successfully.", "success")
    return redirect(url_for('expenses.index'))


@expenses_bp.route('/budgets/delete/<int:id>', methods=['POST'])
@login_required
def delete_budget(id):
    cache = current_app.record_cache
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM budgets WHERE id=%s AND created_by=%s", (id, current_user_id()))
            if cur.rowcount == 0:
                abort(404)
            conn.commit()
            cache.invalidate('budgets', id)
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error deleting budget %s", id)
        flash("Failed to delete budget.", "error")
        return redirect(url_for('expenses.index'))
    finally:
        conn.close()

    flash("Budget deleted successfully.", "success")
    return redirect(url_for('expenses.index'))
