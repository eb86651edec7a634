"""
SmartQueue — Fixed canteen menu
"""
from smartqueue.schemas.queue import MenuItem

MENU_ITEMS: list[MenuItem] = [
    MenuItem(id="vadapav", name="Vada Pav"),
    MenuItem(id="alooparatha", name="Aloo Paratha"),
    MenuItem(id="samosa", name="Samosa"),
    MenuItem(id="masaladosa", name="Masala Dosa"),
    MenuItem(id="cholebhature", name="Chole Bhature"),
    MenuItem(id="sandwich", name="Veg Sandwich"),
    MenuItem(id="coffee", name="Cold Coffee"),
]

MENU_BY_ID: dict[str, MenuItem] = {item.id: item for item in MENU_ITEMS}


def display_name(food_item: str) -> str:
    item = MENU_BY_ID.get(food_item)
    return item.name if item else food_item
