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

import logging
from types import SimpleNamespace

import pyomo.common.unittest as unittest
from pyomo.common.log import LoggingIntercept

from nlpmodels.dependencies import numpy as np
from nlpmodels.errors import DimensionError, IndexPartitionInvariantError
from nlpmodels.slack import SlackModel, slack_model
from nlpmodels.tests.models import (
    equality_model,
    mixed_dense_jac,
    mixed_model,
    three_constraint_model,
)

inf = float('inf')


def dense(rows, cols, vals, shape):
    ans = np.zeros(shape)
    np.add.at(ans, (rows, cols), vals)
    return ans


def dense_jac(nlp, x):
    return dense(*nlp.jac_coord(x), (nlp.meta.ncon, nlp.meta.nvar))


def dense_hess(nlp, x, obj_weight=1.0, y=None):
    n = nlp.meta.nvar
    L = dense(*nlp.hess_coord(x, obj_weight=obj_weight, y=y), (n, n))
    return L + np.tril(L, -1).T


class TestSlackModel(unittest.TestCase):
    def test_three_constraints(self):
        base = three_constraint_model()
        nlp = SlackModel(base)
        meta = nlp.meta
        self.assertEqual(meta.nvar, 4)
        self.assertEqual(meta.ncon, 3)
        self.assertEqual(meta.lcon.tolist(), [0, 0, 0])
        self.assertEqual(meta.ucon.tolist(), [0, 0, 0])
        self.assertEqual(meta.lvar.tolist(), [-inf, -inf, -inf, 1])
        self.assertEqual(meta.uvar.tolist(), [inf, inf, 5, 3])
        self.assertEqual(meta.x0.tolist(), [0, 0, 0, 0])
        self.assertEqual(meta.nnzj, 7)
        self.assertEqual(meta.nnzh, 3)
        self.assertEqual(meta.name, 'three-slack')
        self.assertEqual(meta.jfix.tolist(), [0, 1, 2])
        self.assertEqual(nlp.name, 'three-slack')
        # the wrapped metadata is unchanged
        self.assertEqual(base.meta.nvar, 2)
        self.assertEqual(base.meta.jfix.tolist(), [0])
        self.assertEqual(base.meta.jupp.tolist(), [1])
        self.assertEqual(base.meta.jrng.tolist(), [2])

    def test_cons(self):
        nlp = SlackModel(three_constraint_model())
        X = np.array([1.0, 2.0, 3.0, 4.0])
        self.assertEqual(nlp.cons(X).tolist(), [3.0, -1.0, -3.0])
        # c(x, c(x)[S]) vanishes on the slack rows
        x = np.array([0.3, -0.7])
        c = nlp.model.cons(x)
        self.assertTrue(np.allclose(nlp.cons(np.r_[x, c[[1, 2]]])[1:], 0))

    def test_jac_structure(self):
        nlp = SlackModel(three_constraint_model())
        rows, cols = nlp.jac_structure()
        self.assertEqual(rows.tolist(), [0, 0, 1, 1, 2, 1, 2])
        self.assertEqual(cols.tolist(), [0, 1, 0, 1, 0, 2, 3])
        with self.assertRaises(ValueError):
            rows[0] = 2
        X = np.array([1.0, 2.0, 3.0, 4.0])
        r, c, vals = nlp.jac_coord(X)
        self.assertIs(r, rows)
        self.assertIs(c, cols)
        self.assertEqual(vals.tolist(), [1.0, 1.0, 2.0, 1.0, 2.0, -1.0, -1.0])

    def test_jac_coord_before_structure(self):
        nlp = SlackModel(three_constraint_model())
        rows, cols, _ = nlp.jac_coord(np.ones(4))
        self.assertIs(nlp.jac_structure()[0], rows)
        self.assertEqual(cols.tolist(), [0, 1, 0, 1, 0, 2, 3])

    def test_objective_invariance(self):
        base = mixed_model()
        nlp = SlackModel(base)
        rng = np.random.RandomState(0)
        for trial in range(5):
            x = rng.uniform(-2, 2, size=2)
            s = rng.uniform(-2, 2, size=3)
            X = np.r_[x, s]
            self.assertEqual(nlp.obj(X), base.obj(x))
            self.assertEqual(nlp.grad(X).tolist(), base.grad(x).tolist() + [0, 0, 0])

    def test_products(self):
        base = mixed_model()
        nlp = SlackModel(base)
        rng = np.random.RandomState(1)
        for trial in range(5):
            X = rng.uniform(-2, 2, size=5)
            V = rng.uniform(-2, 2, size=5)
            W = rng.uniform(-2, 2, size=4)
            J = dense_jac(nlp, X)
            self.assertTrue(np.allclose(J[:, :2], mixed_dense_jac(X[:2]), atol=1e-10))
            self.assertTrue(np.allclose(nlp.jprod(X, V), J.dot(V), atol=1e-10))
            self.assertTrue(np.allclose(nlp.jtprod(X, W), J.T.dot(W), atol=1e-10))

    def test_hessian(self):
        base = mixed_model()
        nlp = SlackModel(base)
        X = np.array([0.5, 1.5, 7.0, 8.0, 9.0])
        Y = np.array([1.0, -1.0, 0.5, 2.0])
        rows, cols = nlp.hess_structure()
        brows, bcols = base.hess_structure()
        self.assertEqual(rows.tolist(), brows.tolist())
        self.assertEqual(cols.tolist(), bcols.tolist())
        _, _, vals = nlp.hess_coord(X, obj_weight=0.5, y=Y)
        _, _, bvals = base.hess_coord(X[:2], obj_weight=0.5, y=Y)
        self.assertEqual(vals.tolist(), bvals.tolist())

        H = np.zeros((5, 5))
        H[:2, :2] = dense_hess(base, X[:2], 0.5, Y)
        V = np.array([1.0, -1.0, 2.0, 3.0, 4.0])
        self.assertTrue(np.allclose(nlp.hprod(X, V, obj_weight=0.5, y=Y), H.dot(V)))
        # directions along the slacks only
        V = np.array([0.0, 0.0, 2.0, 3.0, 4.0])
        self.assertEqual(nlp.hprod(X, V, y=Y).tolist(), [0.0] * 5)

    def test_interleaved_partitions(self):
        # rng, low, fix, upp
        base = mixed_model(lcon=[-1.0, 0.0, 1.0, -inf], ucon=[2.0, inf, 1.0, 5.0])
        nlp = SlackModel(base)
        self.assertEqual(nlp.meta.nvar, 5)
        self.assertEqual(nlp.meta.lvar[2:].tolist(), [0, -inf, -1])
        self.assertEqual(nlp.meta.uvar[2:].tolist(), [inf, 5, 2])
        self.assertEqual(nlp.meta.lcon.tolist(), [0, 0, 1, 0])
        self.assertEqual(nlp.meta.ucon.tolist(), [0, 0, 1, 0])
        X = np.array([0.5, 1.5, 10.0, 20.0, 30.0])
        self.assertEqual(nlp.cons(X).tolist(), [1.75 - 30, 0.75 - 10, 3.5, 1.75 - 20])
        rows, cols = nlp.jac_structure()
        self.assertEqual(rows[8:].tolist(), [1, 3, 0])
        self.assertEqual(cols[8:].tolist(), [2, 3, 4])

    def test_free_constraints(self):
        # fix, free, upp, free
        base = mixed_model(lcon=[1.0, -inf, -inf, -inf], ucon=[1.0, inf, 5.0, inf])
        self.assertEqual(base.meta.jfree.tolist(), [1, 3])
        nlp = SlackModel(base)
        self.assertEqual(nlp.meta.nvar, 5)
        self.assertEqual(nlp.meta.lvar[2:].tolist(), [-inf, -inf, -inf])
        self.assertEqual(nlp.meta.uvar[2:].tolist(), [5, inf, inf])
        self.assertEqual(nlp.jac_structure()[0][8:].tolist(), [2, 1, 3])
        self.assertEqual(nlp.meta.ncon - len(nlp.meta.jfix), 0)

    def test_metadata_carried_over(self):
        base = mixed_model(minimize=False, y0=[1, 2, 3, 4])
        nlp = SlackModel(base)
        self.assertFalse(nlp.meta.minimize)
        self.assertFalse(nlp.meta.islp)
        self.assertEqual(nlp.meta.y0.tolist(), [1, 2, 3, 4])
        self.assertEqual(nlp.meta.lin.tolist(), [2])
        self.assertEqual(nlp.meta.nln.tolist(), [0, 1, 3])
        self.assertEqual(nlp.meta.x0.tolist(), [0.5, 1.5, 0, 0, 0])

    def test_shared_counters(self):
        base = mixed_model()
        nlp = SlackModel(base)
        self.assertIs(nlp.counters, base.counters)
        nlp.obj(np.zeros(5))
        base.obj(np.zeros(2))
        self.assertEqual(nlp.neval_obj(), 2)
        self.assertIs(nlp.reset(), nlp)
        self.assertEqual(base.neval_obj(), 0)

    def test_out_buffers(self):
        nlp = SlackModel(mixed_model())
        X = np.array([0.5, 1.5, 1.0, 2.0, 3.0])
        V = np.array([1.0, 0.0, -1.0, 0.0, 1.0])
        W = np.arange(4.0)
        calls = [
            (lambda out: nlp.grad(X, out=out), 5),
            (lambda out: nlp.cons(X, out=out), 4),
            (lambda out: nlp.jprod(X, V, out=out), 4),
            (lambda out: nlp.jtprod(X, W, out=out), 5),
            (lambda out: nlp.hprod(X, V, y=W, out=out), 5),
        ]
        for call, size in calls:
            out = np.full(size, np.nan)
            self.assertIs(call(out), out)
            self.assertEqual(out.tolist(), call(None).tolist())

    def test_dimension_errors(self):
        nlp = SlackModel(mixed_model())
        with self.assertRaisesRegex(DimensionError, r"'x' has shape \(2,\)"):
            nlp.obj(np.zeros(2))
        with self.assertRaisesRegex(DimensionError, r"'v' has shape \(5,\)"):
            nlp.jtprod(np.zeros(5), np.zeros(5))
        out = np.zeros(4)
        with self.assertRaises(DimensionError):
            nlp.grad(np.zeros(5), out=out)
        self.assertEqual(nlp.counters.sum(), 0)

    def test_no_inequalities(self):
        base = equality_model()
        self.assertIs(slack_model(base), base)
        self.assertIs(SlackModel(base), base)
        self.assertEqual(base.meta.nvar, 2)
        self.assertEqual(base.meta.name, 'equality')

    def test_slack_model_factory(self):
        base = three_constraint_model()
        nlp = slack_model(base)
        self.assertIsInstance(nlp, SlackModel)
        self.assertIs(nlp.model, base)
        # the reformulation has no inequality constraints left
        self.assertIs(slack_model(nlp), nlp)
        self.assertIs(SlackModel(nlp), nlp)
        self.assertIs(nlp.model, base)
        self.assertEqual(nlp.meta.name, 'three-slack')
        self.assertEqual(nlp.meta.nvar, 4)

    def test_debug_log(self):
        with LoggingIntercept(module='nlpmodels.slack', level=logging.DEBUG) as LOG:
            slack_model(equality_model())
        self.assertIn(
            "Model 'equality' has no inequality constraints; no slack variables "
            "introduced",
            LOG.getvalue(),
        )
        with LoggingIntercept(module='nlpmodels.slack', level=logging.DEBUG) as LOG:
            slack_model(three_constraint_model())
        self.assertIn(
            "Introduced 2 slack variables in model 'three' "
            "(low=0 upp=1 rng=1 free=0)",
            LOG.getvalue(),
        )

    def test_partition_invariant(self):
        def fake(**parts):
            meta = SimpleNamespace(
                name='fake',
                ncon=3,
                jfix=np.array([1]),
                jlow=np.array([], dtype=int),
                jupp=np.array([], dtype=int),
                jrng=np.array([], dtype=int),
                jfree=np.array([], dtype=int),
            )
            for key, val in parts.items():
                setattr(meta, key, np.array(val, dtype=int))
            return SimpleNamespace(meta=meta)

        with self.assertRaisesRegex(
            IndexPartitionInvariantError,
            "declares 3 constraints, 1 of which",
            normalize_whitespace=True,
        ):
            SlackModel(fake(jlow=[0]))
        with self.assertRaisesRegex(
            IndexPartitionInvariantError,
            r"outside of range\(3\)",
            normalize_whitespace=True,
        ):
            SlackModel(fake(jlow=[0, 5]))
        with self.assertRaisesRegex(
            IndexPartitionInvariantError,
            r"offending indices: \[1, 2\]",
            normalize_whitespace=True,
        ):
            SlackModel(fake(jlow=[0], jupp=[1]))


if __name__ == '__main__':
    unittest.main()
