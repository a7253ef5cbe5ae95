"""Pure paycheck planning logic: schedules, allocations and the assignment board."""
