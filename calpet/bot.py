from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Literal

import discord
from discord import app_commands
from discord.ext import commands
from discord.ext import tasks
from pydantic import ValidationError

from . import actions, care, ledger, satisfaction, shop, upkeep
from .affinity import AFFINITY_MAX, AffinityResult, add_affinity
from .catalog import food_by_id, food_ids, pet_by_id
from .config import settings
from .daily import ensure_daily_reset
from .health import HealthProvider, SampleFileProvider, SampleUpload, UnavailableProvider, write_upload
from .inventory import add_food, first_owned_food_id, owned_foods
from .pet import PetState
from .pet_store import PetStore

logger = logging.getLogger(__name__)

SATISFACTION_ICONS = {0: "🥣", 1: "🍙", 2: "🍙🍙", 3: "🍙🍙🍙"}


def build_provider() -> HealthProvider:
    if settings.health_dir.is_dir():
        return SampleFileProvider(settings.health_dir, settings.tz)
    logger.warning("Health sample directory %s not found; energy sync disabled", settings.health_dir)
    return UnavailableProvider()


def format_affinity(result: AffinityResult | None) -> str:
    if result is None:
        return ""
    gained = result.after - result.before + result.cards_gained * AFFINITY_MAX
    text = f" Affinity +{gained} ({result.after}/{AFFINITY_MAX})."
    if result.did_wrap:
        text += f" 🎫 x{result.cards_gained} affinity card!"
    return text


class PetBot(commands.Bot):
    def __init__(self) -> None:
        intents = discord.Intents.default()
        super().__init__(command_prefix="!", intents=intents)
        self.store = PetStore(settings.db_path, settings.tz)
        self.provider = build_provider()
        self.rng = random.Random()
        self._last_tick: datetime | None = None

    async def setup_hook(self) -> None:
        if settings.guild_id:
            guild = discord.Object(id=settings.guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        else:
            await self.tree.sync()
        self.care_loop.start()

    def load_pet(self, owner_id: int, now: datetime) -> PetState:
        pet = self.store.get_or_create(owner_id, now)
        ensure_daily_reset(pet, now, settings.tz)
        return pet

    def sync_energy(self, pet: PetState, now: datetime) -> int:
        return upkeep.sync_energy(pet, self.provider, now, settings.tz)

    @tasks.loop(minutes=5)
    async def care_loop(self) -> None:
        now = PetState.now()
        previous_tick = self._last_tick or now
        self._last_tick = now
        reminders = upkeep.run_care_tick(
            self.store,
            self.provider,
            now,
            previous_tick,
            settings.tz,
            self.rng,
            settings.toilet_chance,
        )
        for reminder in reminders:
            await self._notify(reminder.owner_id, reminder.message)

    @care_loop.before_loop
    async def before_care_loop(self) -> None:
        await self.wait_until_ready()

    async def _notify(self, owner_id: int, message: str) -> None:
        user = self.get_user(owner_id)
        try:
            if user is None:
                user = await self.fetch_user(owner_id)
            await user.send(message)
        except discord.HTTPException as exc:
            logger.warning("Could not notify owner %s: %s", owner_id, exc)


bot = PetBot()


@bot.event
async def on_ready() -> None:
    if bot.user:
        logger.info("Logged in as %s (ID: %s)", bot.user, bot.user.id)


class PetGroup(app_commands.Group):
    def __init__(self) -> None:
        super().__init__(name="pet", description="Raise your pet with the energy you burn")
        self.add_command(DevGroup())

    @app_commands.command(name="status", description="Check your pet and wallet")
    async def status(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        bot.store.save(pet)

        entry = pet_by_id(pet.current_pet_id)
        level = satisfaction.current_satisfaction(pet, now)
        bath = care.can_bath(pet, now)
        embed = discord.Embed(title=f"{entry.name if entry else pet.current_pet_id}")
        embed.add_field(name="Wallet", value=f"{pet.wallet_energy} kcal", inline=True)
        if pet.pending_energy:
            embed.add_field(name="Pending", value=f"+{pet.pending_energy} kcal", inline=True)
        embed.add_field(name="Today", value=f"{pet.cached_today_steps} steps / {pet.cached_today_energy} kcal", inline=True)
        if pet.daily_goal_energy > 0:
            progress = ledger.goal_progress(pet)
            embed.add_field(name="Goal", value=f"{int(progress * 100)}% of {pet.daily_goal_energy} kcal", inline=True)
        embed.add_field(
            name="Satisfaction",
            value=f"{SATISFACTION_ICONS[level]} {level}/{satisfaction.SATISFACTION_MAX}",
            inline=True,
        )
        embed.add_field(name="Affinity", value=f"{pet.affinity_point}/{AFFINITY_MAX} · 🎫 {pet.affinity_card_count}", inline=True)
        embed.add_field(
            name="Bath",
            value="Ready" if bath.available else f"{actions.format_remaining(bath.remaining_seconds)} left",
            inline=True,
        )
        embed.add_field(name="Toilet", value="Needs you!" if pet.has_toilet_request() else "Fine", inline=True)
        if pet.egg_owned and pet.egg_hatch_at:
            ready = "Ready to hatch" if now >= pet.egg_hatch_at else f"Hatches <t:{int(pet.egg_hatch_at.timestamp())}:R>"
            embed.add_field(name="Egg", value=ready, inline=True)
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="sync", description="Collect the energy you burned since the last sync")
    async def sync(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        earned = bot.sync_energy(pet, now)
        moved = ledger.drain_pending_to_wallet(pet)
        bot.store.save(pet)
        if not earned and not moved:
            await interaction.response.send_message("No new energy since your last sync.")
            return
        await interaction.response.send_message(
            f"+{moved} kcal! Wallet is now {pet.wallet_energy} kcal "
            f"({pet.cached_today_steps} steps today)."
        )

    @app_commands.command(name="upload", description="Upload a health sample file exported from your phone")
    @app_commands.describe(samples="JSON file with steps and energy samples")
    async def upload(self, interaction: discord.Interaction, samples: discord.Attachment) -> None:
        try:
            upload = SampleUpload.model_validate_json(await samples.read())
        except ValidationError as exc:
            await interaction.response.send_message(
                f"That file doesn't look like a sample export ({exc.error_count()} errors).",
                ephemeral=True,
            )
            return
        path = write_upload(settings.health_dir, interaction.user.id, upload)
        logger.info("Stored %s for owner %s", path.name, interaction.user.id)
        if isinstance(bot.provider, UnavailableProvider):
            bot.provider = build_provider()
        await interaction.response.send_message(
            f"Saved {len(upload.energy)} energy and {len(upload.steps)} step samples. Use `/pet sync` to collect them.",
            ephemeral=True,
        )

    @app_commands.command(name="goal", description="Set your daily kcal goal")
    @app_commands.describe(kcal="Daily energy goal in kcal")
    async def goal(self, interaction: discord.Interaction, kcal: int) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        if not ledger.set_daily_goal(pet, kcal):
            await interaction.response.send_message("The goal must be a positive number.", ephemeral=True)
            return
        bot.store.save(pet)
        await interaction.response.send_message(f"Daily goal set to {pet.daily_goal_energy} kcal.")

    @app_commands.command(name="feed", description="Give your pet something from your pantry")
    @app_commands.describe(food="Food id from your pantry (defaults to the first one you own)")
    async def feed(self, interaction: discord.Interaction, food: str | None = None) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        food_id = food or first_owned_food_id(pet, food_ids())
        outcome = actions.give_food(pet, food_id or "", now, settings.tz)
        bot.store.save(pet)
        if not outcome.success:
            await interaction.response.send_message(outcome.reason or "Can't feed right now.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"Your pet ate the {outcome.detail}!{format_affinity(outcome.affinity)}"
        )

    @app_commands.command(name="pantry", description="List the food you own")
    async def pantry(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        foods = owned_foods(pet)
        if not foods:
            await interaction.response.send_message("Your pantry is empty. Visit `/pet shop`.")
            return
        lines = [f"`{entry.id}` {entry.name} x{count}" for entry, count in foods]
        await interaction.response.send_message("\n".join(lines))

    @app_commands.command(name="bath", description="Give your pet a bath")
    async def bath(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        outcome = actions.take_bath(pet, now, settings.tz)
        bot.store.save(pet)
        if not outcome.success:
            await interaction.response.send_message(outcome.reason or "Not yet.", ephemeral=True)
            return
        await interaction.response.send_message(f"Squeaky clean! 🛁{format_affinity(outcome.affinity)}")

    @app_commands.command(name="bath-boost", description="Shorten the bath cooldown by 4 hours")
    async def bath_boost(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        outcome = actions.boost_bath(pet, now, settings.tz)
        bot.store.save(pet)
        if not outcome.success:
            await interaction.response.send_message(outcome.reason or "Can't boost now.", ephemeral=True)
            return
        if outcome.detail == "ready":
            await interaction.response.send_message("Cooldown skipped! Bath is ready.")
        else:
            await interaction.response.send_message(f"Cooldown shortened: {outcome.detail} left.")

    @app_commands.command(name="toilet", description="Take your pet to the toilet")
    async def toilet(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        outcome = actions.tend_toilet(pet, now, settings.tz, bot.rng, settings.toilet_chance)
        bot.store.save(pet)
        if not outcome.success:
            await interaction.response.send_message(outcome.reason or "Nothing to do.", ephemeral=True)
            return
        if outcome.detail == "raised":
            await interaction.response.send_message("🚽 Your pet needs to go!")
            return
        bonus = " Right on time!" if outcome.detail == "toilet_bonus" else ""
        await interaction.response.send_message(f"All done.{bonus}{format_affinity(outcome.affinity)}")

    @app_commands.command(name="pat", description="Give your pet some attention")
    async def pat(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        outcome = actions.pet_pet(pet)
        bot.store.save(pet)
        await interaction.response.send_message(f"Your pet wiggles happily.{format_affinity(outcome.affinity)}")

    @app_commands.command(name="shop", description="See today's shop")
    async def shop_lineup(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        items = shop.open_shop(pet, now, settings.tz, bot.rng)
        bot.store.save(pet)
        lines = [
            f"`{item.id}` {item.name}: {item.price} kcal" + (" (sold out)" if item.stock <= 0 else "")
            for item in items
        ]
        embed = discord.Embed(title="Today's Shop", description="\n".join(lines))
        embed.set_footer(
            text=(
                f"Wallet {pet.wallet_energy} kcal · resets used "
                f"{pet.shop_rerolls_today}/{shop.SHOP_REROLL_DAILY_LIMIT}"
            )
        )
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="buy", description="Buy a food from today's shop")
    @app_commands.describe(food="Food id shown in /pet shop")
    async def buy(self, interaction: discord.Interaction, food: str) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        result = shop.buy_food(pet, food, now, settings.tz, bot.rng)
        bot.store.save(pet)
        if not result.success:
            await interaction.response.send_message(result.reason or "Purchase failed.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"Bought {result.item.name} (-{result.item.price} kcal). Wallet: {pet.wallet_energy} kcal."
        )

    @app_commands.command(name="reroll", description="Redraw today's shop lineup")
    async def reroll(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        result = shop.reroll_shop(pet, now, settings.tz, bot.rng)
        bot.store.save(pet)
        if not result.success:
            await interaction.response.send_message(result.reason or "Can't reset the shop.", ephemeral=True)
            return
        names = ", ".join(item.name for item in pet.shop_items or [])
        await interaction.response.send_message(f"New lineup: {names}")

    @app_commands.command(name="egg", description="Trade an affinity card for an egg")
    async def egg(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        result = shop.buy_egg(pet, now, settings.tz)
        bot.store.save(pet)
        if not result.success:
            await interaction.response.send_message(result.reason or "Can't buy an egg.", ephemeral=True)
            return
        await interaction.response.send_message("🥚 You got an egg! It hatches in 6 hours.")

    @app_commands.command(name="instant-hatch", description="Make your egg ready right now (once a day)")
    async def instant_hatch(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        result = shop.instant_hatch(pet, now, settings.tz)
        bot.store.save(pet)
        if not result.success:
            await interaction.response.send_message(result.reason or "Can't do that now.", ephemeral=True)
            return
        await interaction.response.send_message("The egg is wobbling... use `/pet hatch`!")

    @app_commands.command(name="hatch", description="Hatch your egg")
    async def hatch(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        result = shop.hatch_egg(pet, now, bot.rng)
        bot.store.save(pet)
        if not result.success:
            await interaction.response.send_message(result.reason or "Not yet.", ephemeral=True)
            return
        if result.completed:
            await interaction.response.send_message("🎉 You have collected every pet!")
            return
        entry = pet_by_id(result.pet_id or "")
        await interaction.response.send_message(f"🐣 {entry.name if entry else result.pet_id} joined you!")

    @app_commands.command(name="collection", description="List the pets you have raised")
    async def collection(self, interaction: discord.Interaction) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        lines = [f"{'⭐ ' if row.is_current else ''}{row.name}" for row in shop.pet_rows(pet)]
        embed = discord.Embed(title="Collection", description="\n".join(lines))
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="notify", description="Turn reminders on or off")
    @app_commands.describe(kind="Which reminder", enabled="Whether to send it")
    async def notify(
        self,
        interaction: discord.Interaction,
        kind: Literal["feed", "bath", "toilet"],
        enabled: bool,
    ) -> None:
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        pet.set_notification(kind, enabled)
        bot.store.save(pet)
        state = "on" if enabled else "off"
        await interaction.response.send_message(f"{kind.title()} reminders are {state}.", ephemeral=True)


class DevGroup(app_commands.Group):
    def __init__(self) -> None:
        super().__init__(name="dev", description="Owner-only testing commands")

    async def _ensure_owner(self, interaction: discord.Interaction) -> bool:
        if not await bot.is_owner(interaction.user):
            await interaction.response.send_message(
                "Only the bot owner can use dev commands.",
                ephemeral=True,
            )
            return False
        return True

    @app_commands.command(name="grant-kcal", description="Add kcal to your pending balance")
    @app_commands.describe(amount="kcal to add (default 500)")
    async def grant_kcal(self, interaction: discord.Interaction, amount: int = 500) -> None:
        if not await self._ensure_owner(interaction):
            return
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        ledger.deposit_pending(pet, max(1, amount))
        bot.store.save(pet)
        await interaction.response.send_message(
            f"Pending balance is now {pet.pending_energy} kcal.",
            ephemeral=True,
        )

    @app_commands.command(name="grant-affinity", description="Add affinity points")
    @app_commands.describe(points="Points to add (default 100)")
    async def grant_affinity(self, interaction: discord.Interaction, points: int = 100) -> None:
        if not await self._ensure_owner(interaction):
            return
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        result = add_affinity(pet, max(1, points))
        bot.store.save(pet)
        await interaction.response.send_message(
            f"Affinity {result.after}/{AFFINITY_MAX}, cards {pet.affinity_card_count}.",
            ephemeral=True,
        )

    @app_commands.command(name="grant-food", description="Put a food in your pantry")
    @app_commands.describe(food="Food id", count="How many (default 1)")
    async def grant_food(self, interaction: discord.Interaction, food: str, count: int = 1) -> None:
        if not await self._ensure_owner(interaction):
            return
        entry = food_by_id(food)
        if entry is None:
            await interaction.response.send_message("Unknown food id.", ephemeral=True)
            return
        now = PetState.now()
        pet = bot.load_pet(interaction.user.id, now)
        add_food(pet, entry.id, max(1, count))
        bot.store.save(pet)
        await interaction.response.send_message(f"Added {entry.name}.", ephemeral=True)


bot.tree.add_command(PetGroup())


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN is not set")
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
