"""
PYHYB: Python implementation of the hybridization expansion CT-QMC solver
=========================================================================

Continuous time quantum Monte Carlo for quantum impurity problems, expanding
in the hybridization between the impurity and its bath.

Contents
--------
systems : operators and the atomic (local) problem.
gf : Matsubara / imaginary time meshes, tails and Fourier transforms.
walkers : Monte Carlo configuration and hybridization determinants.
propagation : trace of the local operator product.
updates : insert and remove moves.
estimators : Green's function and perturbation order measurements.
qmc : Monte Carlo driver, solver and input handling.
analysis : reading results back.
"""
