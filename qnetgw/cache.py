"""Thread-safe cache of user, repeater, gateway and nickname lookups."""

import threading


class CacheManager:
    """Maps users to repeaters, repeaters to gateways and gateways to addresses.

    Lookups return an empty string when nothing is known.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._user_time = {}
        self._user_rptr = {}
        self._rptr_gate = {}
        self._gate_addr = {}
        self._name_nick = {}

    def find_user_data(self, user):
        """Return (repeater, gateway, address) for a user."""
        with self._lock:
            rptr = self._find_user_rptr(user)
            gate = self._find_rptr_gate(rptr)
            addr = self._find_gate_addr(gate)
        return rptr, gate, addr

    def find_rptr_data(self, rptr):
        """Return (gateway, address) for a repeater."""
        with self._lock:
            gate = self._find_rptr_gate(rptr)
            addr = self._find_gate_addr(gate)
        return gate, addr

    def find_user_time(self, user):
        if not user:
            return ""
        with self._lock:
            return self._user_time.get(user, "")

    def find_user_addr(self, user):
        with self._lock:
            return self._find_gate_addr(self._find_rptr_gate(self._find_user_rptr(user)))

    def find_name_nick(self, name):
        if not name:
            return ""
        with self._lock:
            return self._name_nick.get(name, "")

    def find_user_repeater(self, user):
        with self._lock:
            return self._find_user_rptr(user)

    def find_gate_address(self, gate):
        with self._lock:
            return self._find_gate_addr(gate)

    def find_server_user(self):
        """Return the first known name beginning with 's-', or an empty string."""
        with self._lock:
            return next((name for name in self._name_nick if name.startswith("s-")), "")

    def erase_gate(self, gate):
        with self._lock:
            self._gate_addr.pop(gate, None)

    def erase_name(self, name):
        with self._lock:
            self._name_nick.pop(name, None)

    def clear_gate(self):
        """Forget all gateway addresses and nicknames."""
        with self._lock:
            self._gate_addr.clear()
            self._name_nick.clear()

    def update_user(self, user, rptr, gate, addr, time):
        if not user:
            return
        with self._lock:
            if time:
                self._user_time[user] = time
            if not rptr:
                return
            self._user_rptr[user] = rptr
            if not gate or not addr:
                return
            if rptr[:7] != gate[:7]:
                self._rptr_gate[rptr] = gate
            self._gate_addr[gate] = addr

    def update_rptr(self, rptr, gate, addr):
        if not rptr or not gate:
            return
        with self._lock:
            self._rptr_gate[rptr] = gate
            if addr:
                self._gate_addr[gate] = addr

    def update_gate(self, gate, addr):
        """Record a gateway address; underscores in the gateway name become spaces."""
        if not gate or not addr:
            return
        with self._lock:
            self._gate_addr[gate.replace("_", " ")] = addr

    def update_name(self, name, nick):
        if not name or not nick:
            return
        with self._lock:
            self._name_nick[name] = nick

    # The helpers below expect the lock to be held by the caller.

    def _find_user_rptr(self, user):
        if not user:
            return ""
        return self._user_rptr.get(user, "")

    def _find_rptr_gate(self, rptr):
        if not rptr:
            return ""
        gate = self._rptr_gate.get(rptr)
        if gate is None:
            gate = rptr[:7].ljust(7) + "G" + rptr[8:]
        return gate

    def _find_gate_addr(self, gate):
        if not gate:
            return ""
        return self._gate_addr.get(gate, "")