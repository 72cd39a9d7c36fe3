from typing import Any, Dict, Iterable


def snapshot(obj: Any, fields: Iterable[str]) -> Dict[str, Any]:
    return {field: getattr(obj, field) for field in fields}


def diff_objects(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Devuelve {campo: {"from": viejo, "to": nuevo}} solo con los campos que cambiaron.
    Se usa como registro de auditoría en las actualizaciones.
    """
    changes = {}
    for field in set(before) | set(after):
        old, new = before.get(field), after.get(field)
        if old != new:
            changes[field] = {"from": old, "to": new}
    return changes
