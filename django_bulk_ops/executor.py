from typing import Any, List, Optional


class OperationExecutor:
    def execute(
        self, sql: str, transactional: bool = False, fixed_item_count: Optional[int] = None
    ) -> int:
        """
        Run a (possibly multi-statement) script.

        :param sql: Non-empty SQL script
        :param transactional: Run the whole script in one transaction
        :param fixed_item_count: Returned instead of the driver row count when given
        :return: Affected row count
        """
        raise NotImplementedError

    def fetch_column(self, sql: str) -> List[Any]:
        """
        Run a single query and return the values of its first column.
        """
        raise NotImplementedError
