"""
Loop Guard - Bounds recursive data resolution.

Every pull of a value across an input connection recurses into the upstream
node's own inputs. A cyclic data graph (A's input wired to B, B's input wired
back to A) would recurse forever; the guard counts nested pulls and raises a
LoopError once the ceiling is passed.

The guard is an immutable value threaded down the recursion: each pull hands
the incremented guard to the nested resolution, and the caller carries on with
its own guard once that resolution completes. The ceiling therefore bounds
one chain of nested pulls, not the total number of pulls in a run.
"""

from dataclasses import dataclass, replace

from nodeflow.errors import LoopError

DEFAULT_MAX_LOOPS = 1000


@dataclass(frozen=True)
class LoopGuard:
    """Recursion budget for one chain of data pulls.

    A negative max_loops disables the check (for intentionally deep graphs).
    """

    max_loops: int = DEFAULT_MAX_LOOPS
    loops: int = 0

    @property
    def enabled(self) -> bool:
        return self.max_loops >= 0

    def check_loops(self) -> "LoopGuard":
        """Account for one more nested pull.

        Returns:
            The guard to pass into the nested resolution

        Raises:
            LoopError: If the ceiling has been exceeded
        """
        if self.enabled and self.loops > self.max_loops:
            raise LoopError(
                f"Max loop count exceeded ({self.max_loops}).",
                LoopError.MAX_LOOPS_EXCEEDED,
            )
        return replace(self, loops=self.loops + 1)

    def reset_loops(self, max_loops: int | None = None) -> "LoopGuard":
        """Return a fresh window, optionally with a new ceiling."""
        return LoopGuard(max_loops=DEFAULT_MAX_LOOPS if max_loops is None else max_loops)
