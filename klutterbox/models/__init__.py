# Models package
from klutterbox.models.box import Box
from klutterbox.models.item import Item
from klutterbox.models.search_token import ItemSearchToken
