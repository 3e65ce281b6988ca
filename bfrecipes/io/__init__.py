from .logging import *  # noqa


def leftpad(thing, n: int = 2, char=" "):
    return "\n".join([n * char + line for line in str(thing).splitlines()])


def repr_lat_lon(lat, lon):
    lat_repr = f"{round(abs(lat), 3)}°{'N' if lat > 0 else 'S'}"
    lon_repr = f"{round(abs(lon), 3)}°{'E' if lon > 0 else 'W'}"
    return f"({lat_repr}, {lon_repr})"
