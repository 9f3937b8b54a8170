"""Parent-link cycle detection for the category tree."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

ParentLookup = Callable[[int], Awaitable[Optional[int]]]


async def would_create_cycle(
	category_id: int,
	candidate_parent_id: int,
	*,
	parent_of: ParentLookup,
	max_steps: int,
) -> bool:
	"""Return True when making `candidate_parent_id` the parent of `category_id` closes a loop.

	The walk follows parent links upward from the candidate. It stops after
	`max_steps` hops (the number of categories), so an already corrupt chain
	cannot loop forever; running out of steps counts as a cycle.
	"""

	if category_id == candidate_parent_id:
		return True
	current: Optional[int] = candidate_parent_id
	for _ in range(max(max_steps, 1)):
		if current is None:
			return False
		if current == category_id:
			return True
		current = await parent_of(current)
	return current is not None
