# Single orbital coupled to a constant hybridization function.
# Delta(tau) = -1/2 is a single bath level at zero energy, so the exact
# Green's function is known.
import numpy
from pyhyb.qmc.calc import init_communicator
from pyhyb.qmc.solver import Solver
from pyhyb.systems.operators import n
from pyhyb.utils.testing import noninteracting_impurity_g_tau

beta = 10.0
n_iw = 50
n_tau = 200

params = {
    "n_cycles": 20000,
    "length_cycle": 10,
    "n_warmup_cycles": 1000,
    "random_seed": 7,
    "measure_pert_order": True
}
estimates = {
    "filename": "flat_delta.h5"
}

comm = init_communicator()
solver = Solver(beta, {'up': [0]}, n_iw=n_iw, n_tau=n_tau)
delta = {'up': -0.5*numpy.ones((n_tau, 1, 1))}
solver.solve(0.0*n('up', 0), params, delta_tau=delta, comm=comm,
             estimates=estimates)
exact = noninteracting_impurity_g_tau(beta, solver.tau, 0.0, [0.0], [1.0])
print ("Average sign: %f"%solver.average_sign)
print ("Max deviation from exact G(tau): %f"
       %numpy.max(numpy.abs(solver.G_tau[0][:, 0, 0]-exact)))
print ("Mean perturbation order: %f"
       %numpy.average(numpy.arange(len(solver.pert_order[0])),
                      weights=solver.pert_order[0]))
