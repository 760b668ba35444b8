"""
host.py - Static host facts reported with every heartbeat.

Gathered once at startup; none of this changes while the agent runs.
"""

import ipaddress
import logging
import os
import platform
import re
import socket
import subprocess
from dataclasses import dataclass
from typing import Optional

import psutil

logger = logging.getLogger("agent")

VPN_INTERFACE_PREFIXES = ("tun", "tap", "utun", "wg", "tailscale", "nordlynx", "proton", "mullvad")

_RFC1918 = tuple(
    ipaddress.ip_network(n) for n in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)


@dataclass
class HostInfo:
    hostname: str
    ip: str
    cpu_model: str
    cpu_family: str
    cores: int
    os: str
    arch: str


def _cpu_model() -> str:
    system = platform.system()
    if system == "Linux":
        try:
            with open("/proc/cpuinfo", "r", encoding="utf-8") as fh:
                for line in fh:
                    if line.lower().startswith(("model name", "hardware", "cpu model")):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass
    elif system == "Darwin":
        try:
            out = subprocess.run(
                ["sysctl", "-n", "machdep.cpu.brand_string"],
                capture_output=True, text=True, timeout=2,
            )
            if out.returncode == 0 and out.stdout.strip():
                return out.stdout.strip()
        except (OSError, subprocess.TimeoutExpired):
            pass
    return platform.processor() or platform.machine()


def cpu_family(model: str, arch: str) -> str:
    """Coarse vendor/family slug, e.g. ``apple_m2_pro``, ``amd_ryzen``, ``intel``."""
    lowered = model.lower()
    apple = re.search(r"apple (m\d+)(?: (pro|max|ultra))?", lowered)
    if apple:
        return "_".join(p for p in ("apple",) + apple.groups() if p)
    if "ryzen" in lowered:
        return "amd_ryzen"
    if "epyc" in lowered:
        return "amd_epyc"
    if "amd" in lowered:
        return "amd"
    if "intel" in lowered:
        return "intel"
    return arch or "unknown"


def is_vpn_interface(name: str) -> bool:
    return name.lower().startswith(VPN_INTERFACE_PREFIXES)


def detect_lan_ip() -> str:
    """First RFC1918 IPv4 address on an up, non-VPN interface.

    Falls back to the first other usable IPv4 address, or "" when the host
    has none. Loopback addresses never count.
    """
    try:
        addrs = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except (OSError, psutil.Error):
        logger.warning("Could not list network interfaces")
        return ""

    fallback = ""
    for name, addr_list in addrs.items():
        if name not in stats or not stats[name].isup or is_vpn_interface(name):
            continue
        for addr in addr_list:
            if addr.family != socket.AF_INET:
                continue
            ip = ipaddress.ip_address(addr.address)
            if ip.is_loopback:
                continue
            if any(ip in net for net in _RFC1918):
                return addr.address
            fallback = fallback or addr.address
    return fallback


def _normalize_arch(machine: str) -> str:
    return {"x86_64": "amd64", "aarch64": "arm64"}.get(machine.lower(), machine.lower())


def probe_host(cores: Optional[int] = None) -> HostInfo:
    model = _cpu_model()
    arch = _normalize_arch(platform.machine())
    info = HostInfo(
        hostname=socket.gethostname(),
        ip=detect_lan_ip(),
        cpu_model=model,
        cpu_family=cpu_family(model, arch),
        cores=cores if cores is not None else (os.cpu_count() or 0),
        os=platform.system().lower(),
        arch=arch,
    )
    logger.info("CPU: %s (%s, %d cores)", info.cpu_model, info.cpu_family, info.cores)
    return info
