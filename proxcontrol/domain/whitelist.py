def parse_allowed_vms(raw: str) -> frozenset[int]:
    """Разбор ALLOWED_VMS: "100, 101,102" -> {100, 101, 102}

    Пустая строка даёт пустой белый список. Любой элемент, кроме десятичных
    ASCII-цифр (со знаком или без), считается ошибкой конфигурации (ValueError):
    int() принял бы и "10_1", и цифры других алфавитов.
    """
    if not raw or not raw.strip():
        return frozenset()

    vmids = set()
    for part in raw.split(","):
        part = part.strip()
        digits = part[1:] if part[:1] in ("+", "-") else part
        if not (digits and digits.isascii() and digits.isdigit()):
            raise ValueError(f"invalid VM id in ALLOWED_VMS: {part!r}")
        vmids.add(int(part))
    return frozenset(vmids)
