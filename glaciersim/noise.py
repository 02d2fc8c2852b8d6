"""Two-dimensional simplex noise."""

from glaciersim.mathutils import integer

_PERMUTATION = (
    151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225, 140, 36, 103, 30, 69, 142,
    8, 99, 37, 240, 21, 10, 23, 190, 6, 148, 247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117,
    35, 11, 32, 57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175, 74, 165, 71,
    134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122, 60, 211, 133, 230, 220, 105, 92, 41,
    55, 46, 245, 40, 244, 102, 143, 54, 65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208, 89,
    18, 169, 200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3, 64, 52, 217, 226,
    250, 124, 123, 5, 202, 38, 147, 118, 126, 255, 82, 85, 212, 207, 206, 59, 227, 47, 16, 58, 17, 182,
    189, 28, 42, 223, 183, 170, 213, 119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101, 155, 167, 43,
    172, 9, 129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185, 112, 104, 218, 246, 97,
    228, 251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241, 81, 51, 145, 235, 249, 14, 239,
    107, 49, 192, 214, 31, 181, 199, 106, 157, 184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254,
    138, 236, 205, 93, 222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
)

# Duplicated so that index sums never need wrapping.
_PERM = _PERMUTATION + _PERMUTATION

_GRAD2 = (
    (1, 1), (-1, 1), (1, -1), (-1, -1),
    (1, 0), (-1, 0), (0, 1), (0, -1),
)

_F2 = 0.5 * (3.0 ** 0.5 - 1.0)
_G2 = (3.0 - 3.0 ** 0.5) / 6.0


def _corner(gradient_index: int, x: float, y: float) -> float:
    t = 0.5 - x * x - y * y
    if t < 0:
        return 0.0
    t *= t
    gx, gy = _GRAD2[gradient_index]
    return t * t * (gx * x + gy * y)


class SimplexNoise:
    """Deterministic 2D simplex noise with values in ``[-1, 1]``."""

    def at(self, x: float, y: float) -> float:
        """Noise value at ``(x, y)``."""
        s = (x + y) * _F2
        i = integer(x + s)
        j = integer(y + s)

        t = (i + j) * _G2
        x0 = x - (i - t)
        y0 = y - (j - t)

        i1, j1 = (1, 0) if x0 > y0 else (0, 1)

        x1 = x0 - i1 + _G2
        y1 = y0 - j1 + _G2
        x2 = x0 - 1.0 + 2.0 * _G2
        y2 = y0 - 1.0 + 2.0 * _G2

        ii = i & 255
        jj = j & 255
        gi0 = _PERM[ii + _PERM[jj]] % 8
        gi1 = _PERM[ii + i1 + _PERM[jj + j1]] % 8
        gi2 = _PERM[ii + 1 + _PERM[jj + 1]] % 8

        total = _corner(gi0, x0, y0) + _corner(gi1, x1, y1) + _corner(gi2, x2, y2)
        return 70.0 * total