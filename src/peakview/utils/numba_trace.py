import numpy as np
from numba import njit


@njit(cache=True)
def trace_edges_kernel(mag, threshold, max_points, check_interval, capacity, cancel_flag):
    """
    Row-major scan of a gradient-magnitude map, flood filling every unvisited
    pixel >= threshold over its 4-neighbours with an explicit stack.

    A fill stops once it has collected max_points points. Components of a
    single point are dropped. capacity must be at least the number of pixels
    >= threshold.

    Returns (xs, ys, offsets, cancelled): component i owns
    xs[offsets[i]:offsets[i + 1]] in visitation order.
    """
    rows, cols = mag.shape

    xs = np.empty(capacity, dtype=np.int32)
    ys = np.empty(capacity, dtype=np.int32)
    offsets = np.empty(capacity + 1, dtype=np.int64)
    offsets[0] = 0
    n_points = 0
    n_components = 0

    visited = np.zeros((rows, cols), dtype=np.uint8)
    # Each collected point pushes at most 4 neighbours
    stack_x = np.empty(4 * max_points + 1, dtype=np.int32)
    stack_y = np.empty(4 * max_points + 1, dtype=np.int32)

    for y in range(rows):
        if y % check_interval == 0 and cancel_flag[0] != 0:
            return xs[:0], ys[:0], offsets[:1], True

        for x in range(cols):
            if visited[y, x] != 0 or mag[y, x] < threshold:
                continue

            start = n_points
            count = 0
            stack_x[0] = x
            stack_y[0] = y
            top = 1

            while top > 0:
                top -= 1
                cx = stack_x[top]
                cy = stack_y[top]
                if visited[cy, cx] != 0:
                    continue

                visited[cy, cx] = 1
                xs[n_points] = cx
                ys[n_points] = cy
                n_points += 1
                count += 1

                # Left, right, up, down; popped in reverse
                if cx > 0 and visited[cy, cx - 1] == 0 and mag[cy, cx - 1] >= threshold:
                    stack_x[top] = cx - 1
                    stack_y[top] = cy
                    top += 1
                if cx + 1 < cols and visited[cy, cx + 1] == 0 and mag[cy, cx + 1] >= threshold:
                    stack_x[top] = cx + 1
                    stack_y[top] = cy
                    top += 1
                if cy > 0 and visited[cy - 1, cx] == 0 and mag[cy - 1, cx] >= threshold:
                    stack_x[top] = cx
                    stack_y[top] = cy - 1
                    top += 1
                if cy + 1 < rows and visited[cy + 1, cx] == 0 and mag[cy + 1, cx] >= threshold:
                    stack_x[top] = cx
                    stack_y[top] = cy + 1
                    top += 1

                if count >= max_points:
                    break

            if count > 1:
                n_components += 1
                offsets[n_components] = n_points
            else:
                n_points = start

    return xs[:n_points], ys[:n_points], offsets[: n_components + 1], False
