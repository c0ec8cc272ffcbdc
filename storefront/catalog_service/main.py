# storefront/catalog_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Catalog Service (dev mock)")


FOOD_ITEMS = {
    1: {"id": 1, "name": "Rice Bowl", "description": "Garlic rice, egg, pork adobo", "price": "120.00",
        "image_url": "/img/rice-bowl.jpg", "category_id": 1, "is_featured": True, "is_available": True,
        "preparation_time": 15},
    2: {"id": 2, "name": "Iced Tea", "description": "House-brewed", "price": "50.00",
        "image_url": "/img/iced-tea.jpg", "category_id": 2, "is_featured": False, "is_available": True,
        "preparation_time": 2},
    3: {"id": 3, "name": "Pancit Canton", "description": "Stir-fried noodles", "price": "150.00",
        "image_url": "/img/pancit.jpg", "category_id": 1, "is_featured": False, "is_available": True,
        "preparation_time": 20},
}

SIZES = {
    1: {"id": 1, "name": "Regular", "multiplier": "1.0"},
    2: {"id": 2, "name": "Large", "multiplier": "1.5"},
}


@app.get("/food-items/{food_item_id}")
def get_food_item(food_item_id: int):
    item = FOOD_ITEMS.get(food_item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Food item not found")
    return item


@app.get("/sizes/{size_option_id}")
def get_size(size_option_id: int):
    size = SIZES.get(size_option_id)
    if not size:
        raise HTTPException(status_code=404, detail="Size option not found")
    return size
