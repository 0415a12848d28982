"""Numeric kernels and random variates used alongside weight vectors."""

from .kernels import (
    NEG_INF,
    add_in_place,
    exp_table,
    log_add,
    multiply_in_place,
    sample_discrete,
    sloppy_exp_negative,
)
from .sampling import (
    VariateGenerator,
    digamma,
    log_gamma,
    sample_beta,
    sample_gamma,
    sample_gaussian,
    sample_student_t,
    sloppy_exp,
    sloppy_log,
)

__all__ = [
    'NEG_INF',
    'add_in_place',
    'exp_table',
    'log_add',
    'multiply_in_place',
    'sample_discrete',
    'sloppy_exp_negative',
    'VariateGenerator',
    'digamma',
    'log_gamma',
    'sample_beta',
    'sample_gamma',
    'sample_gaussian',
    'sample_student_t',
    'sloppy_exp',
    'sloppy_log',
]
