#  ___________________________________________________________________________
#
#  Pyomo: Python Optimization Modeling Objects
#  Copyright (c) 2008-2025
#  National Technology and Engineering Solutions of Sandia, LLC
#  Under the terms of Contract DE-NA0003525 with National Technology and
#  Engineering Solutions of Sandia, LLC, the U.S. Government retains certain
#  rights in this software.
#  This software is distributed under the 3-clause BSD License.
#  ___________________________________________________________________________

from collections import namedtuple

#: Registered evaluation kinds, in reporting order.
COUNTER_NAMES = (
    'neval_obj',
    'neval_grad',
    'neval_cons',
    'neval_jac',
    'neval_jprod',
    'neval_jtprod',
    'neval_hess',
    'neval_hprod',
)

CounterSnapshot = namedtuple('CounterSnapshot', COUNTER_NAMES)


class Counters(object):
    """Tally of the evaluations performed by a concrete model.

    Only the model that performs the actual evaluation owns (and
    increments) a Counters object; wrappers such as
    :py:class:`~nlpmodels.slack.SlackModel` share the counters of the
    model they wrap.
    """

    __slots__ = COUNTER_NAMES

    def __init__(self):
        self.reset()

    def increment(self, name):
        if name not in COUNTER_NAMES:
            raise KeyError("Unknown evaluation counter '%s'" % (name,))
        val = getattr(self, name) + 1
        setattr(self, name, val)
        return val

    def reset(self):
        for name in COUNTER_NAMES:
            setattr(self, name, 0)

    def snapshot(self):
        return CounterSnapshot(*(getattr(self, name) for name in COUNTER_NAMES))

    def sum(self):
        """Total number of evaluations of any kind"""
        return sum(getattr(self, name) for name in COUNTER_NAMES)

    def __repr__(self):
        return '%s(%s)' % (
            self.__class__.__name__,
            ', '.join('%s=%s' % (name, getattr(self, name)) for name in COUNTER_NAMES),
        )
