"""
Module Installation System

This package reconciles modules present in the code base with modules
installed in the database and drives them through install, update and
uninstall.
"""
