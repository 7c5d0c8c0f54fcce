from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, Input, Label, Markdown

from api.client import ApiError
from api.models import UserProfile
from utils.messages import ModeSwitchedMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen, Sidebar


def profile_markdown(profile: UserProfile) -> str:
    rows = [
        ["Name", profile.name or "-"],
        ["Email", profile.email or "-"],
        ["Account Type", "Seller" if profile.is_seller else "Buyer"],
        ["Phone", profile.phone or "-"],
        ["Address", profile.address or "-"],
        ["Image", profile.img or "-"],
    ]
    return "### My Profile\n\n" + generate_markdown_table(None, rows, ["l", "l"])


class ProfileScreen(BaseScreen):
    """
    Shows the logged-in profile and edits name, phone, address and image.
    Email and account type are fixed at signup.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-profile"):
            yield Markdown("", id="md-profile")
            yield Label("Name")
            yield Input(id="input-profile-name")
            yield Label("Phone")
            yield Input(id="input-profile-phone")
            yield Label("Address")
            yield Input(id="input-profile-address")
            yield Label("Image URL")
            yield Input(id="input-profile-img")
            with Horizontal(id="hort-buttons"):
                yield Button("Reload", id="btn-refresh")
                yield Button("Save Changes", id="btn-save", variant="primary")

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def load_profile(self) -> None:
        try:
            profile = await self.backend.profile.get_profile()
        except ApiError as e:
            self.notify(e.message, severity="error")
            profile = self.app.state.profile
        if profile is None:
            return
        self.app.state.profile = profile
        await self._render_profile(profile)

    async def _render_profile(self, profile: UserProfile) -> None:
        await self.query_one("#md-profile", Markdown).update(profile_markdown(profile))
        self.query_one("#input-profile-name", Input).value = profile.name
        self.query_one("#input-profile-phone", Input).value = profile.phone
        self.query_one("#input-profile-address", Input).value = profile.address
        self.query_one("#input-profile-img", Input).value = profile.img

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        name = self.query_one("#input-profile-name", Input).value.strip()
        if not name:
            self.notify("Name cannot be empty.", severity="error")
            self.query_one("#input-profile-name").focus()
            return

        try:
            profile = await self.backend.profile.update_profile(
                name=name,
                phone=self.query_one("#input-profile-phone", Input).value.strip(),
                address=self.query_one("#input-profile-address", Input).value.strip(),
                img=self.query_one("#input-profile-img", Input).value.strip(),
            )
            # some replies omit fields that were not changed
            if not profile.id:
                profile = await self.backend.profile.get_profile()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.app.state.profile = profile
        await self._render_profile(profile)
        for sidebar in self.query(Sidebar):
            await sidebar.render_user()
        self.notify("Profile updated.")
