from pyhyb.updates.insert import InsertMove
from pyhyb.updates.remove import RemoveMove
from pyhyb.utils.io import get_input_value


def get_moves(config, options={}, verbose=False):
    """Construct the insert and remove moves of every block.

    Parameters
    ----------
    config : :class:`pyhyb.walkers.configuration.Configuration`
        Configuration the moves act on.
    options : dict
        Move options. ``move_weights`` gives the relative proposal weight of
        each move type, ``{'insert': 1.0, 'remove': 1.0}`` by default.

    Returns
    -------
    moves : list
        Move objects.
    weights : list
        Unnormalised proposal weight of each move.
    """
    move_weights = get_input_value(options, 'move_weights',
                                   default={'insert': 1.0, 'remove': 1.0},
                                   verbose=verbose)
    for key, value in move_weights.items():
        if key not in ('insert', 'remove'):
            raise ValueError("Unknown move type: {}.".format(key))
        if value < 0:
            raise ValueError("Move weights must be non-negative.")
    w_insert = move_weights.get('insert', 0.0)
    w_remove = move_weights.get('remove', 0.0)
    if w_insert != w_remove:
        raise ValueError("Insert and remove moves must have equal weights "
                         "to satisfy detailed balance.")
    if w_insert == 0.0:
        raise ValueError("Move weights must not all vanish.")
    moves = []
    weights = []
    for (b, name) in enumerate(config.model.block_names):
        moves.append(InsertMove(b, config, name='Insert %s' % name))
        weights.append(w_insert)
        moves.append(RemoveMove(b, config, name='Remove %s' % name))
        weights.append(w_remove)
    return (moves, weights)
