# Half filled single band Hubbard impurity with a two level bath.
# Run in parallel with: mpirun -np 4 python run.py
import sys
from pyhyb.qmc.calc import init_communicator, run_calculation

comm = init_communicator(parallel='serial' not in sys.argv[1:])
solver = run_calculation('input.json', comm=comm)
if comm.rank == 0:
    print ("Average sign: %f"%solver.average_sign)
    print ("G(beta/2) up: %f"%solver.G_tau[0][len(solver.tau)//2, 0, 0])
