"""
Guestbook application package.

Layered the same way throughout:

  guestbook_app/repositories/  — pure I/O: loading from and persisting to JSON files.
  guestbook_app/services/      — business logic: validation, counters, domain rules.
  guestbook_app/templates/     — Jinja pages rendered by the HTTP layer.

Route handlers in ``guestbook_web.py`` only talk to the services, never to the
files directly.
"""
