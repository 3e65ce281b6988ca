from .solution import CalSolution, cal_index_key, decode_tensor, find_solution_key, get_latest_solution, scrub_nans  # noqa
