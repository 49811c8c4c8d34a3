"""
Helpers for building module code bases in temporary folders
"""

import json
import shutil
import tempfile
from pathlib import Path

from django.db import connection


class SimulatedCrash(BaseException):
    """Stands in for the process being killed; not caught by the installer"""


FORUMS_PACKAGE = {
    'resource': {'display_name': 'Forums', 'object_types': ['forums.forum']},
    'classes': [
        {'class_name': 'forums.post', 'table_name': 'forums_post', 'definition': {'fields': ['title']}},
    ],
    'objects': [
        {'object_type': 'forums.forum', 'code_name': 'general', 'data': {'title': 'General'}},
        {'object_type': 'forums.forum', 'code_name': 'support', 'data': {'title': 'Support'}},
    ],
}

FORUMS_SCRIPTS = {
    'install/before.sql': 'CREATE TABLE forums_post (id integer PRIMARY KEY, title varchar(200));',
    'install/after.sql': (
        "CREATE TABLE forums_audit (message varchar(200));\n"
        "INSERT INTO forums_audit (message) VALUES ('installed');"
    ),
    'update/before.sql': "INSERT INTO forums_audit (message) VALUES (%(from_version)s);",
    'update/after.sql': "INSERT INTO forums_audit (message) VALUES (%(to_version)s);",
    'uninstall/after.sql': 'DROP TABLE forums_audit;',
}


class ModuleWorkspaceMixin:
    """Creates a temporary installation root with a modules folder"""

    def setUp(self):
        super().setUp()
        self.root_path = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.root_path, ignore_errors=True)
        super().tearDown()

    def module_path(self, name):
        return self.root_path / 'modules' / name

    def write_module(self, name, version, package=None, scripts=None, export_package=None):
        module_dir = self.module_path(name)
        module_dir.mkdir(parents=True, exist_ok=True)

        manifest = {'name': name, 'version': version, 'display_name': name}
        if package:
            manifest['package'] = package
        (module_dir / 'module.json').write_text(json.dumps(manifest))

        for relative_path, content in (scripts or {}).items():
            script_path = module_dir / relative_path
            script_path.parent.mkdir(parents=True, exist_ok=True)
            script_path.write_text(content)

        if export_package is not None:
            package_dir = module_dir / 'package'
            package_dir.mkdir(exist_ok=True)
            for old_package in package_dir.glob('*.json'):
                old_package.unlink()
            (package_dir / f"{name}_{version}.json").write_text(json.dumps(export_package))

        return module_dir

    def write_forums(self, version='1.0', package=None):
        return self.write_module('Forums', version, package=package,
                                 scripts=FORUMS_SCRIPTS, export_package=FORUMS_PACKAGE)

    def remove_module(self, name):
        shutil.rmtree(self.module_path(name))

    def repository_path(self, name, version):
        return self.root_path / 'installation' / 'repository' / name / version

    def token_path(self, name, version):
        return self.root_path / 'installation' / 'tokens' / name / f"{version}.token"


def table_exists(table_name):
    with connection.cursor() as cursor:
        return table_name in connection.introspection.table_names(cursor)


def fetch_column(sql):
    with connection.cursor() as cursor:
        cursor.execute(sql)
        return [row[0] for row in cursor.fetchall()]


def execute_sql(sql):
    with connection.cursor() as cursor:
        for statement in connection.ops.prepare_sql_script(sql):
            cursor.execute(statement)
