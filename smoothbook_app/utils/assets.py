"""
Per-request registry of stylesheets, scripts and localised script data.

Views enqueue what their screen needs; ``templates/base.html`` renders the
registry through the ``enqueued_styles`` and ``enqueued_scripts`` globals.
"""
import json
import logging
from flask import g, url_for
from markupsafe import Markup

from smoothbook_app import __version__

logger = logging.getLogger(__name__)

def _registry():
    if 'assets' not in g:
        g.assets = {'styles': {}, 'scripts': {}, 'localized': {}}
    return g.assets

def enqueue_style(handle, filename, deps=(), version=None):
    registry = _registry()
    for dep in deps:
        if dep not in registry['styles']:
            logger.warning(f"Style {handle} depends on {dep}, which is not enqueued")
    registry['styles'].setdefault(handle, {'filename': filename, 'version': version or __version__})

def enqueue_script(handle, filename, deps=(), version=None):
    _registry()['scripts'].setdefault(handle, {'filename': filename, 'deps': list(deps), 'version': version or __version__})

def localize_script(handle, object_name, data):
    _registry()['localized'][handle] = (object_name, data)

def enqueued_handles(kind):
    return list(_registry()[kind])

def render_enqueued_styles():
    tags = []
    for handle, style in _registry()['styles'].items():
        href = url_for('static', filename=style['filename'], ver=style['version'])
        tags.append(Markup('<link rel="stylesheet" id="{}-css" href="{}" />').format(handle, href))
    return Markup('\n').join(tags)

def render_enqueued_scripts():
    registry = _registry()
    tags = []
    for handle, script in registry['scripts'].items():
        if handle in registry['localized']:
            object_name, data = registry['localized'][handle]
            payload = json.dumps(data).replace('<', '\\u003c').replace('>', '\\u003e').replace('&', '\\u0026')
            tags.append(
                Markup('<script id="{}-js-extra">var {} = ').format(handle, object_name)
                + Markup(payload)
                + Markup(';</script>')
            )
        src = url_for('static', filename=script['filename'], ver=script['version'])
        tags.append(Markup('<script id="{}-js" src="{}"></script>').format(handle, src))
    return Markup('\n').join(tags)
