"""Texto legible de una decodificación: detalle del sensor y volcado hex."""

from __future__ import annotations

from libre_fram.decoder import FramDecode


def format_minutes(minutes: int) -> str:
    """Render a minute count as days, hours and minutes."""
    days, rest = divmod(minutes, 1440)
    hours, mins = divmod(rest, 60)
    parts: list[str] = []
    if days:
        parts.append(f"{days} {'day' if days == 1 else 'days'}")
    if hours:
        parts.append(f"{hours} {'hour' if hours == 1 else 'hours'}")
    if mins or not parts:
        parts.append(f"{mins} {'minute' if mins == 1 else 'minutes'}")
    return ", ".join(parts)


def hex_dump(data: bytes, header: str = "", starting_block: int = 0) -> str:
    """Dump ``data`` as 8-byte blocks prefixed by the block number.

    Args:
        data: Bytes to dump.
        header: Optional first line.
        starting_block: Number of the first block (FRAM is addressed in 8-byte
            blocks).

    Returns:
        The dump text.
    """
    lines = [header] if header else []
    for index in range(0, len(data), 8):
        block = data[index : index + 8]
        number = starting_block + index // 8
        lines.append(f"{number:02X}: " + " ".join(f"{b:02X}" for b in block))
    return "\n".join(lines)


def detail_lines(result: FramDecode) -> list[str]:
    """Lines describing the decoded sensor, in reading order."""
    identity = result.identity
    lines = [
        f"Sensor type: {identity.sensor_type}",
        f"Sensor family: {identity.family.description}",
    ]
    if identity.serial:
        lines.append(f"Sensor serial: {identity.serial}")
    if identity.security_generation:
        lines.append(f"Security generation: {identity.security_generation}")
    if result.encrypted_fram and result.report.complete:
        lines.append("FRAM was encrypted")
    lines.extend(result.report.describe().splitlines())
    if result.error is not None:
        lines.append(f"Error: {result.error}")
        return lines
    lines.append(
        f"Sensor state: {result.state.description.lower()} (0x{result.state.value:02X})"
    )
    if result.initializations > 0:
        lines.append(f"Sensor initializations: {result.initializations}")
    region = identity.region
    region_code = f" (0x{region.value:02X})" if region.value else ""
    lines.append(f"Sensor region: {region.description}{region_code}")
    if result.max_life > 0:
        lines.append(
            f"Sensor maximum life: {result.max_life} minutes "
            f"({format_minutes(result.max_life)})"
        )
    if result.age > 0:
        started = result.start_date.strftime("%Y-%m-%d %H:%M")
        lines.append(
            f"Sensor age: {result.age} minutes ({format_minutes(result.age)}), "
            f"started on: {started}"
        )
    return lines
