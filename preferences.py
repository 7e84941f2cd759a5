"""
Per-browser preferences kept in long-lived cookies, independent of the
login session so they survive a logout.
"""

import json

from flask import current_app

from commands import LANGUAGES
from finance import CURRENCIES

THEME_COOKIE = 'theme'
SETTINGS_COOKIE = 'settings'
THEMES = ('light', 'dark', 'system')

NOTIFICATION_KEYS = ('email', 'push', 'sms', 'fee_reminders', 'payment_confirmations')
PRIVACY_KEYS = ('profile_visibility', 'show_email', 'show_phone')


def default_settings():
    return {
        'notifications': {
            'email': True,
            'push': False,
            'sms': False,
            'fee_reminders': True,
            'payment_confirmations': True,
        },
        'privacy': {
            'profile_visibility': 'private',
            'show_email': False,
            'show_phone': False,
        },
        'language': 'en',
        'currency': current_app.config.get('DEFAULT_CURRENCY', 'INR'),
    }


def load_theme(request):
    theme = request.cookies.get(THEME_COOKIE)
    return theme if theme in THEMES else 'system'


def load_settings(request):
    settings = default_settings()
    raw = request.cookies.get(SETTINGS_COOKIE)
    if not raw:
        return settings
    try:
        saved = json.loads(raw)
    except ValueError:
        current_app.logger.warning("Ignoring malformed settings cookie")
        return settings
    if not isinstance(saved, dict):
        return settings

    for section in ('notifications', 'privacy'):
        if isinstance(saved.get(section), dict):
            settings[section].update(
                (k, v) for k, v in saved[section].items() if k in settings[section]
            )
    for key, allowed in (('language', LANGUAGES), ('currency', CURRENCIES)):
        if isinstance(saved.get(key), str) and saved[key] in allowed:
            settings[key] = saved[key]
    return settings


def settings_from_command(command):
    return {
        'notifications': {k: getattr(command, k) for k in NOTIFICATION_KEYS},
        'privacy': {k: getattr(command, k) for k in PRIVACY_KEYS},
        'language': command.language,
        'currency': command.currency,
    }


def save_theme(response, theme):
    response.set_cookie(
        THEME_COOKIE, theme,
        max_age=current_app.config['PREFERENCE_COOKIE_MAX_AGE'],
        samesite='Lax',
    )


def save_settings(response, settings):
    response.set_cookie(
        SETTINGS_COOKIE, json.dumps(settings),
        max_age=current_app.config['PREFERENCE_COOKIE_MAX_AGE'],
        samesite='Lax',
    )
