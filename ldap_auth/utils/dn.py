from __future__ import annotations


def join_dn(prefix: str, base: str) -> str:
    """Prepend a relative unit to a base DN (``ou=People`` + ``dc=x`` -> ``ou=People,dc=x``)."""
    prefix = (prefix or "").strip().strip(",")
    base = (base or "").strip()
    if not prefix:
        return base
    if not base:
        return prefix
    return f"{prefix},{base}"


def dn_first_component_value(dn: str) -> str:
    """Return first RDN value from a DN (e.g. CN=USB-Deny,OU=... -> USB-Deny).

    Values without an ``=`` in the first component are plain names and come
    back unchanged apart from whitespace.
    """
    s = (dn or "").strip()
    if not s:
        return ""

    # Extract first RDN (handle escaped commas)
    first: list[str] = []
    esc = False
    for ch in s:
        if esc:
            first.append("\\" + ch)
            esc = False
            continue
        if ch == "\\":
            esc = True
            continue
        if ch == ",":
            break
        first.append(ch)
    rdn = "".join(first).strip()

    if "=" in rdn.replace("\\=", ""):
        _, val = _split_unescaped(rdn, "=")
        val = val.strip()
    else:
        val = rdn

    # Unescape common DN escapes
    val = (
        val.replace("\\,", ",")
        .replace("\\+", "+")
        .replace("\\=", "=")
        .replace('\\"', '"')
        .replace("\\\\", "\\")
    )
    return val.strip()


def _split_unescaped(s: str, sep: str) -> tuple[str, str]:
    i = 0
    while i < len(s):
        if s[i] == "\\":
            i += 2
            continue
        if s[i] == sep:
            return s[:i], s[i + 1:]
        i += 1
    return s, ""
