from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired when anything was added to or removed from the cart.
    Will trigger a refresh of cart screen

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class WishlistChangedMessage(Message):
    """
    Fired after a wishlist toggle settles. Product lists redraw their hearts.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    Listened to by past orders
    """

    bubble = True


class ProductsChangedMessage(Message):
    """
    Fired by sellers after creating, editing or deleting a product.
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
