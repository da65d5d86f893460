"""pharsync CLI — Typer-based command-line interface.

Provides the ``pharsync`` command: ``run`` drives the reconcile loop;
``apply``, ``get``, ``delete`` and ``list`` manage the plugin store.

All output uses Rich for formatted terminal display.
"""
