"""
Production domain: the Order -> MO -> Jobsheet -> Task hierarchy, machines
and breakdowns.
"""
