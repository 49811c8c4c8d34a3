"""
Module Installation Signals

Django signals for module lifecycle events. All signals are sent with the
installer as sender.
"""

from django.dispatch import Signal

# Module lifecycle signals, sent after the database transaction commits
module_installed = Signal()    # kwargs: module, restart_needed
module_updated = Signal()      # kwargs: installed_module, module, restart_needed
module_uninstalled = Signal()  # kwargs: module

# Finish action failures
module_finish_action_failed = Signal()  # kwargs: module, action, error, failures, alert
