"""Catalog of ready-made RouterOS API commands.

Each entry is either a constant word tuple for a parameterless command or a
builder returning a word list for a parameterized one. Both can be passed
straight to ``RouterOSApiClient.send``:

    identity = await client.send(SYSTEM.identity)
    await client.send(SYSTEM.set_identity("core-router"))
    await client.send(IP.add_firewall_rule("input", "drop", {"src-address": "10.0.0.0/8"}))

Builders raise ValueError when a required argument is empty.
"""

from collections.abc import Mapping
from typing import Any

Command = tuple[str, ...]


def _require(builder: str, **arguments: Any) -> None:
    missing = [name for name, value in arguments.items() if value in (None, "")]
    if missing:
        raise ValueError(f"{builder} requires: {', '.join(missing)}")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def _with_params(
    words: list[str], params: Mapping[str, Any] | None, upper_comment: bool = False
) -> list[str]:
    for key, value in (params or {}).items():
        if upper_comment and key == "comment" and isinstance(value, str):
            value = value.upper()
        words.append(f"={key}={_format_value(value)}")
    return words


class SystemCommands:
    """Identity, resources, clock, logging, users and packages."""

    identity: Command = ("/system/identity/print",)
    resources: Command = ("/system/resource/print",)
    routerboard: Command = ("/system/routerboard/print",)
    health: Command = ("/system/health/print",)
    clock: Command = ("/system/clock/print",)
    history: Command = ("/system/history/print",)
    license: Command = ("/system/license/print",)
    logs: Command = ("/log/print",)
    log_topics: Command = ("/system/logging/print",)
    users: Command = ("/user/print",)
    reboot: Command = ("/system/reboot",)
    shutdown: Command = ("/system/shutdown",)
    check_for_updates: Command = ("/system/package/update/check-for-updates",)
    upgrade_packages: Command = ("/system/package/update/install",)

    @staticmethod
    def set_identity(name: str) -> list[str]:
        _require("set_identity", name=name)
        return ["/system/identity/set", f"=name={name}"]

    @staticmethod
    def set_clock(date: str, time: str) -> list[str]:
        """Set the device clock (``date`` like "jan/02/2024", ``time`` "HH:MM:SS")."""
        _require("set_clock", date=date, time=time)
        return ["/system/clock/set", f"=date={date}", f"=time={time}"]

    @staticmethod
    def add_log_topic(topic: str, action: str) -> list[str]:
        _require("add_log_topic", topic=topic, action=action)
        return ["/system/logging/add", f"=topics={topic}", f"=action={action}"]

    @staticmethod
    def add_user(name: str, password: str, group: str) -> list[str]:
        _require("add_user", name=name, password=password, group=group)
        return ["/user/add", f"=name={name}", f"=password={password}", f"=group={group}"]

    @staticmethod
    def remove_user(user_id: str) -> list[str]:
        _require("remove_user", user_id=user_id)
        return ["/user/remove", f"=.id={user_id}"]


class InterfaceCommands:
    """Interfaces, ethernet, bridges and VLANs."""

    all: Command = ("/interface/print",)
    ethernet: Command = ("/interface/ethernet/print",)
    bridges: Command = ("/interface/bridge/print",)
    vlans: Command = ("/interface/vlan/print",)

    @staticmethod
    def by_type(interface_type: str) -> list[str]:
        _require("by_type", interface_type=interface_type)
        return ["/interface/print", f"?type={interface_type}"]

    @staticmethod
    def enable(interface_id: str) -> list[str]:
        _require("enable", interface_id=interface_id)
        return ["/interface/enable", f"=.id={interface_id}"]

    @staticmethod
    def disable(interface_id: str) -> list[str]:
        _require("disable", interface_id=interface_id)
        return ["/interface/disable", f"=.id={interface_id}"]

    @staticmethod
    def monitor_traffic(interface: str) -> list[str]:
        """Single traffic sample; without ``=once=`` the command never completes."""
        _require("monitor_traffic", interface=interface)
        return ["/interface/monitor-traffic", f"=interface={interface}", "=once="]

    @staticmethod
    def set_ethernet_mtu(interface_id: str, mtu: int) -> list[str]:
        _require("set_ethernet_mtu", interface_id=interface_id, mtu=mtu)
        return ["/interface/ethernet/set", f"=.id={interface_id}", f"=mtu={mtu}"]

    @staticmethod
    def add_bridge(name: str) -> list[str]:
        _require("add_bridge", name=name)
        return ["/interface/bridge/add", f"=name={name}"]

    @staticmethod
    def add_bridge_port(bridge: str, interface: str) -> list[str]:
        _require("add_bridge_port", bridge=bridge, interface=interface)
        return ["/interface/bridge/port/add", f"=bridge={bridge}", f"=interface={interface}"]

    @staticmethod
    def add_vlan(name: str, vlan_id: int, interface: str) -> list[str]:
        _require("add_vlan", name=name, vlan_id=vlan_id, interface=interface)
        return [
            "/interface/vlan/add",
            f"=name={name}",
            f"=vlan-id={vlan_id}",
            f"=interface={interface}",
        ]


class IPCommands:
    """Addresses, DHCP, DNS, firewall, routes, services and address lists."""

    addresses: Command = ("/ip/address/print",)
    dhcp_servers: Command = ("/ip/dhcp-server/print",)
    dhcp_leases: Command = ("/ip/dhcp-server/lease/print",)
    dns_settings: Command = ("/ip/dns/print",)
    dns_cache: Command = ("/ip/dns/cache/print",)
    firewall_filter: Command = ("/ip/firewall/filter/print",)
    nat_rules: Command = ("/ip/firewall/nat/print",)
    routes: Command = ("/ip/route/print",)
    services: Command = ("/ip/service/print",)

    @staticmethod
    def add_address(address: str, interface: str) -> list[str]:
        _require("add_address", address=address, interface=interface)
        return ["/ip/address/add", f"=address={address}", f"=interface={interface}"]

    @staticmethod
    def remove_address(address_id: str) -> list[str]:
        _require("remove_address", address_id=address_id)
        return ["/ip/address/remove", f"=.id={address_id}"]

    @staticmethod
    def add_dhcp_server(name: str, interface: str, address_pool: str) -> list[str]:
        _require("add_dhcp_server", name=name, interface=interface, address_pool=address_pool)
        return [
            "/ip/dhcp-server/add",
            f"=name={name}",
            f"=interface={interface}",
            f"=address-pool={address_pool}",
        ]

    @staticmethod
    def add_dhcp_lease(
        address: str,
        mac_address: str,
        server: str | None = None,
        comment: str | None = None,
    ) -> list[str]:
        """Static lease; the comment is stored upper-case."""
        _require("add_dhcp_lease", address=address, mac_address=mac_address)
        words = ["/ip/dhcp-server/lease/add", f"=address={address}", f"=mac-address={mac_address}"]
        if server:
            words.append(f"=server={server}")
        if comment:
            words.append(f"=comment={comment.upper()}")
        return words

    @staticmethod
    def set_dhcp_lease(lease_id: str, params: Mapping[str, Any] | None = None) -> list[str]:
        _require("set_dhcp_lease", lease_id=lease_id)
        return _with_params(
            ["/ip/dhcp-server/lease/set", f"=.id={lease_id}"], params, upper_comment=True
        )

    @staticmethod
    def remove_dhcp_lease(lease_id: str) -> list[str]:
        _require("remove_dhcp_lease", lease_id=lease_id)
        return ["/ip/dhcp-server/lease/remove", f"=.id={lease_id}"]

    @staticmethod
    def set_dns_servers(servers: str | list[str]) -> list[str]:
        """Set upstream DNS servers (comma-separated string or list)."""
        if not isinstance(servers, str):
            servers = ",".join(servers)
        _require("set_dns_servers", servers=servers)
        return ["/ip/dns/set", f"=servers={servers}"]

    @staticmethod
    def add_firewall_rule(
        chain: str, action: str, params: Mapping[str, Any] | None = None
    ) -> list[str]:
        _require("add_firewall_rule", chain=chain, action=action)
        return _with_params(
            ["/ip/firewall/filter/add", f"=chain={chain}", f"=action={action}"], params
        )

    @staticmethod
    def add_nat_rule(chain: str, action: str, params: Mapping[str, Any] | None = None) -> list[str]:
        _require("add_nat_rule", chain=chain, action=action)
        return _with_params(["/ip/firewall/nat/add", f"=chain={chain}", f"=action={action}"], params)

    @staticmethod
    def add_route(destination: str, gateway: str) -> list[str]:
        _require("add_route", destination=destination, gateway=gateway)
        return ["/ip/route/add", f"=dst-address={destination}", f"=gateway={gateway}"]

    @staticmethod
    def enable_service(name: str) -> list[str]:
        _require("enable_service", name=name)
        return ["/ip/service/set", f"=name={name}", "=disabled=no"]

    @staticmethod
    def disable_service(name: str) -> list[str]:
        _require("disable_service", name=name)
        return ["/ip/service/set", f"=name={name}", "=disabled=yes"]

    @staticmethod
    def add_to_address_list(list_name: str, address: str, comment: str | None = None) -> list[str]:
        """Add an address-list entry; the comment is stored upper-case."""
        _require("add_to_address_list", list_name=list_name, address=address)
        words = ["/ip/firewall/address-list/add", f"=list={list_name}", f"=address={address}"]
        if comment:
            words.append(f"=comment={comment.upper()}")
        return words

    @staticmethod
    def set_address_list(entry_id: str, params: Mapping[str, Any] | None = None) -> list[str]:
        _require("set_address_list", entry_id=entry_id)
        return _with_params(
            ["/ip/firewall/address-list/set", f"=.id={entry_id}"], params, upper_comment=True
        )

    @staticmethod
    def remove_address_list(entry_id: str) -> list[str]:
        _require("remove_address_list", entry_id=entry_id)
        return ["/ip/firewall/address-list/remove", f"=.id={entry_id}"]


class QueueCommands:
    """Simple queues, queue trees and queue types."""

    simple_queues: Command = ("/queue/simple/print",)
    tree_queues: Command = ("/queue/tree/print",)
    queue_types: Command = ("/queue/type/print",)

    @staticmethod
    def add_simple_queue(name: str, target: str, max_limit: str) -> list[str]:
        """``max_limit`` is "upload/download", e.g. "10M/10M"."""
        _require("add_simple_queue", name=name, target=target, max_limit=max_limit)
        return [
            "/queue/simple/add",
            f"=name={name}",
            f"=target={target}",
            f"=max-limit={max_limit}",
        ]

    @staticmethod
    def update_simple_queue(queue_id: str, params: Mapping[str, Any] | None = None) -> list[str]:
        _require("update_simple_queue", queue_id=queue_id)
        return _with_params(["/queue/simple/set", f"=.id={queue_id}"], params)

    @staticmethod
    def remove_simple_queue(queue_id: str) -> list[str]:
        _require("remove_simple_queue", queue_id=queue_id)
        return ["/queue/simple/remove", f"=.id={queue_id}"]


class PPPCommands:
    """PPP profiles, secrets and active sessions."""

    profiles: Command = ("/ppp/profile/print",)
    secrets: Command = ("/ppp/secret/print",)
    active: Command = ("/ppp/active/print",)

    @staticmethod
    def add_secret(name: str, password: str, service: str) -> list[str]:
        _require("add_secret", name=name, password=password, service=service)
        return ["/ppp/secret/add", f"=name={name}", f"=password={password}", f"=service={service}"]


class ToolsCommands:
    """Diagnostics tools, each bounded so the command completes."""

    @staticmethod
    def ping(address: str, count: int = 4) -> list[str]:
        _require("ping", address=address)
        return ["/ping", f"=address={address}", f"=count={count}"]

    @staticmethod
    def traceroute(address: str, count: int = 1) -> list[str]:
        _require("traceroute", address=address)
        return ["/tool/traceroute", f"=address={address}", f"=count={count}"]

    @staticmethod
    def bandwidth_test(address: str, direction: str = "both", duration: str = "10s") -> list[str]:
        _require("bandwidth_test", address=address)
        return [
            "/tool/bandwidth-test",
            f"=address={address}",
            f"=direction={direction}",
            f"=duration={duration}",
        ]

    @staticmethod
    def traffic_monitor(interface: str) -> list[str]:
        return InterfaceCommands.monitor_traffic(interface)

    @staticmethod
    def cpu_profile(duration: str = "10s") -> list[str]:
        return ["/tool/profile", f"=duration={duration}"]

    @staticmethod
    def torch(interface: str, duration: str = "5s") -> list[str]:
        _require("torch", interface=interface)
        return ["/tool/torch", f"=interface={interface}", f"=duration={duration}"]


class WirelessCommands:
    """Legacy wireless package interfaces and security profiles."""

    interfaces: Command = ("/interface/wireless/print",)
    registration_table: Command = ("/interface/wireless/registration-table/print",)
    security_profiles: Command = ("/interface/wireless/security-profiles/print",)

    @staticmethod
    def scan(interface: str, duration: str = "5s") -> list[str]:
        _require("scan", interface=interface)
        return ["/interface/wireless/scan", f"=interface={interface}", f"=duration={duration}"]

    @staticmethod
    def add_security_profile(
        name: str, mode: str, authentication: str, encryption: str, passphrase: str
    ) -> list[str]:
        """WPA/WPA2 profile using one passphrase for both key types."""
        _require(
            "add_security_profile",
            name=name,
            mode=mode,
            authentication=authentication,
            encryption=encryption,
            passphrase=passphrase,
        )
        return [
            "/interface/wireless/security-profiles/add",
            f"=name={name}",
            f"=mode={mode}",
            f"=authentication-types={authentication}",
            f"=unicast-ciphers={encryption}",
            f"=group-ciphers={encryption}",
            f"=wpa-pre-shared-key={passphrase}",
            f"=wpa2-pre-shared-key={passphrase}",
        ]


SYSTEM = SystemCommands
INTERFACE = InterfaceCommands
IP = IPCommands
QUEUE = QueueCommands
PPP = PPPCommands
TOOLS = ToolsCommands
WIRELESS = WirelessCommands

__all__ = [
    "Command",
    "SYSTEM",
    "INTERFACE",
    "IP",
    "QUEUE",
    "PPP",
    "TOOLS",
    "WIRELESS",
    "SystemCommands",
    "InterfaceCommands",
    "IPCommands",
    "QueueCommands",
    "PPPCommands",
    "ToolsCommands",
    "WirelessCommands",
]
