"""
SQL Script Runner

Executes module lifecycle scripts against the database.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Union

from django.db import DEFAULT_DB_ALIAS, connections

from .exceptions import ModuleScriptError

logger = logging.getLogger(__name__)


class SqlScriptRunner:
    """
    Runs SQL script files on a database connection.

    Scripts may contain several statements. Parameters are referenced with
    the ``%(name)s`` placeholder style, e.g. ``%(from_version)s``. Statements
    without a placeholder run as written, so they may contain literal ``%``
    characters; statements with one must write them as ``%%``.
    """

    def run(
        self,
        script_path: Union[str, Path],
        parameters: Optional[Dict[str, str]] = None,
        using: str = DEFAULT_DB_ALIAS,
    ) -> bool:
        """
        Execute a script file.

        Args:
            script_path: Path of the script
            parameters: Named query parameters
            using: Database alias, must be the alias of the caller's transaction

        Returns:
            False if the script does not exist, True once it has been executed

        Raises:
            ModuleScriptError: If a statement fails
        """
        script_path = Path(script_path)
        if not script_path.is_file():
            return False

        sql = script_path.read_text(encoding='utf-8')
        connection = connections[using]
        statements = connection.ops.prepare_sql_script(sql)

        logger.debug(f"Executing {len(statements)} statements from {script_path}")
        with connection.cursor() as cursor:
            for statement in statements:
                try:
                    if self._uses_parameters(statement, parameters):
                        cursor.execute(statement, parameters)
                    else:
                        cursor.execute(statement)
                except Exception as e:
                    raise ModuleScriptError(f"Script {script_path} failed: {e}", script_path) from e

        return True

    @staticmethod
    def _uses_parameters(statement: str, parameters: Optional[Dict[str, str]]) -> bool:
        if not parameters:
            return False
        return any(
            re.search(r'%\(' + re.escape(name) + r'\)s', statement) for name in parameters
        )
