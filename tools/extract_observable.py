#!/usr/bin/env python
'''Extract observables from solver output files.'''

import argparse
import sys
import pandas as pd
from pyhyb.analysis.extraction import (
        extract_green_function,
        extract_move_histograms,
        extract_pert_order,
        extract_statistics
        )


def parse_args(args):
    """Parse command-line arguments.

    Parameters
    ----------
    args : list of strings
        command-line arguments.

    Returns
    -------
    options : :class:`argparse.ArgumentParser`
        Command line arguments.
    """

    parser = argparse.ArgumentParser(description = __doc__)
    parser.add_argument('-b', '--block', type=str, dest='block',
                        default=None, help='Block of the Green\'s function to '
                        'extract.')
    parser.add_argument('-e', '--element',
                        type=lambda s: [int(item) for item in s.split(',')],
                        dest='element', default=[0, 0],
                        help='Element of the block to extract.')
    parser.add_argument('-o', '--observable', type=str, dest='obs',
                        default='G_tau', help='Data to extract. Options: '
                        'G_tau/pert_order/statistics/histograms')
    parser.add_argument('-n', '--normalise', action='store_true',
                        dest='normalise', default=False,
                        help='Normalise perturbation order histograms.')
    parser.add_argument('-f', nargs='+', dest='filename',
                        help='Space-separated list of files to analyse.')

    options = parser.parse_args(args)

    if not options.filename:
        parser.print_help()
        sys.exit(1)

    return options


def main(args):
    """Extract observable from output.

    Parameters
    ----------
    args : list of strings
        command-line arguments.

    Returns
    -------
    results : :class:`pandas.DataFrame`
        Extracted results.
    """

    options = parse_args(args)
    frames = []
    for filename in options.filename:
        if options.obs == 'G_tau':
            (tau, G_tau) = extract_green_function(filename)
            block = options.block
            if block is None:
                block = sorted(G_tau.keys())[0]
            (i, j) = options.element
            frames.append(pd.DataFrame({'tau': tau,
                                        'G': G_tau[block][:, i, j]}))
        elif options.obs == 'pert_order':
            frames.append(extract_pert_order(filename,
                                             normalise=options.normalise))
        elif options.obs == 'statistics':
            frames.append(extract_statistics(filename).to_frame().T)
        elif options.obs == 'histograms':
            frames.append(extract_move_histograms(filename))
        else:
            print ('Unknown observable')
            sys.exit(1)
    results = pd.concat(frames, keys=options.filename)
    print (results.to_string())
    return results

if __name__ == '__main__':

    main(sys.argv[1:])
