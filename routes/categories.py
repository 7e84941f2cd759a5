import mysql.connector
from flask import Blueprint, render_template, request, redirect, url_for, current_app, flash, abort
from auth_utils import login_required
from commands import CreateCategory, parse
from finance import ValidationError

categories_bp = Blueprint('categories', __name__, url_prefix='/categories')

DEFAULT_COLOR = '#6366f1'


@categories_bp.route('/')
@login_required
def index():
    fee_categories, expense_categories = [], []
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute("SELECT id, name, description, is_recurring FROM fee_categories ORDER BY name")
            fee_categories = cur.fetchall()
            cur.execute("SELECT id, name, description, color FROM expense_categories ORDER BY name")
            expense_categories = cur.fetchall()
    except mysql.connector.Error:
        current_app.logger.exception("Error loading categories")
        flash("Failed to load categories.", "error")
    finally:
        conn.close()
    return render_template('categories.html', fee_categories=fee_categories,
                           expense_categories=expense_categories)


def insert_category(sql, params):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            conn.commit()
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error creating category")
        flash("Failed to create category.", "error")
        return redirect(url_for('categories.index'))
    finally:
        conn.close()
    flash("Category created successfully.", "success")
    return redirect(url_for('categories.index'))


@categories_bp.route('/fee', methods=['POST'])
@login_required
def add_fee_category():
    try:
        command = parse(CreateCategory, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('categories.index'))
    return insert_category(
        "INSERT IGNORE INTO fee_categories (name, description, is_recurring) VALUES (%s, %s, %s)",
        (command.name, command.description, command.is_recurring),
    )


@categories_bp.route('/expense', methods=['POST'])
@login_required
def add_expense_category():
    try:
        command = parse(CreateCategory, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('categories.index'))
    return insert_category(
        "INSERT IGNORE INTO expense_categories (name, description, color) VALUES (%s, %s, %s)",
        (command.name, command.description, command.color or DEFAULT_COLOR),
    )


@categories_bp.route('/<kind>/delete/<int:id>', methods=['POST'])
@login_required
def delete(kind, id):
    tables = {'fee': 'fee_categories', 'expense': 'expense_categories'}
    if kind not in tables:
        abort(404)

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(f"DELETE FROM {tables[kind]} WHERE id=%s", (id,))
            conn.commit()
    except mysql.connector.Error:
        conn.rollback()
        current_app.logger.exception("Error deleting %s category %s", kind, id)
        flash("Failed to delete category. It may still be in use.", "error")
        return redirect(url_for('categories.index'))
    finally:
        conn.close()
    return redirect(url_for('categories.index'))
