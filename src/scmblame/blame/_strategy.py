"""Blame back-end selection policy."""

from structlog.typing import FilteringBoundLogger  # noqa: TC002

from scmblame.enums import BlameAlgorithm
from scmblame.utils import create_logger


class DefaultBlameStrategy:
    """Chooses the back-end to try first for a batch of files.

    Native blame starts one process per file, which pays off once there are
    at least as many files as workers. Smaller batches use the library.
    A forced algorithm, when configured, always wins.

    Instances are callable, so any `(file_count, parallelism) -> BlameAlgorithm`
    function can stand in for this class.

    Attributes:
        forced: Algorithm used regardless of the inputs, or None.
    """

    def __init__(
        self,
        forced: BlameAlgorithm | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.forced: BlameAlgorithm | None = forced
        self._logger: FilteringBoundLogger = logger or create_logger()

    def choose(self, file_count: int, available_parallelism: int) -> BlameAlgorithm:
        """Pick the algorithm for a batch.

        Args:
            file_count: Number of files in the batch.
            available_parallelism: Number of workers blaming the batch.

        Returns:
            The algorithm to try first for every file of the batch.
        """
        if self.forced is not None:
            return self.forced

        if available_parallelism <= 0:
            self._logger.warning(
                "Available parallelism should be greater than 0, using native blame",
                available_parallelism=available_parallelism,
            )
            return BlameAlgorithm.NATIVE_BLAME

        if file_count >= available_parallelism:
            return BlameAlgorithm.NATIVE_BLAME
        return BlameAlgorithm.LIBRARY_BLAME

    def __call__(self, file_count: int, available_parallelism: int) -> BlameAlgorithm:
        return self.choose(file_count, available_parallelism)
