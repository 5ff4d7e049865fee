"""Iteration driver shared by the iterative correction algorithms."""

import enum
import numbers

from petpvc.errors import InvalidParameter


class AlgorithmState(enum.Enum):
    INIT = "init"
    ITERATING = "iterating"
    DONE = "done"


class Algorithm:
    """
    Minimal iterate-and-callback loop.

    Subclasses implement :meth:`update`, performing one iteration on
    ``self.x``. ``iteration`` counts completed iterations and callbacks are
    invoked with the algorithm after each one.
    """

    def __init__(self):
        self.iteration = 0
        self.state = AlgorithmState.INIT

    @property
    def solution(self):
        """Return current solution."""
        return self.x

    def update(self):  # pragma: no cover - implemented by subclasses
        raise NotImplementedError

    def run(self, iterations, verbose=0, callbacks=None):
        if (isinstance(iterations, bool)
                or not isinstance(iterations, numbers.Integral)
                or iterations < 1):
            raise InvalidParameter(
                f"Number of iterations must be an integer >= 1, got {iterations!r}."
            )
        callbacks = callbacks or []
        self.state = AlgorithmState.ITERATING
        for _ in range(int(iterations)):
            self.update()
            self.iteration += 1
            for callback in callbacks:
                callback(self)
        self.state = AlgorithmState.DONE
        return self.solution
