"""Game rules and constants for the werewolf round engine."""

from enum import Enum


class Role(str, Enum):
    """Player roles in the game."""

    # Village
    VILLAGER = "villager"
    SEER = "seer"
    DOCTOR = "doctor"
    HUNTER = "hunter"
    GUARDIAN = "guardian"
    PRIEST = "priest"
    PRINCE = "prince"
    LYCANTHROPE = "lycanthrope"
    TWIN = "twin"
    SORCERESS = "sorceress"
    GHOST = "ghost"
    VIRGINIA_WOOLF = "virginia_woolf"
    LEPER = "leper"
    RIVER_SIREN = "river_siren"
    LOOKOUT = "lookout"
    TROUBLEMAKER = "troublemaker"
    SILENCER = "silencer"
    SEER_APPRENTICE = "seer_apprentice"
    ELDER_LEADER = "elder_leader"
    RESURRECTOR_ANGEL = "resurrector_angel"
    # Wolves
    WEREWOLF = "werewolf"
    WOLF_CUB = "wolf_cub"
    CURSED = "cursed"
    WITCH = "witch"
    SEEKER_FAIRY = "seeker_fairy"
    # Neutral
    CUPID = "cupid"
    SHAPESHIFTER = "shapeshifter"
    DRUNK_MAN = "drunk_man"
    CULT_LEADER = "cult_leader"
    FISHERMAN = "fisherman"
    VAMPIRE = "vampire"
    BANSHEE = "banshee"
    EXECUTIONER = "executioner"
    SLEEPING_FAIRY = "sleeping_fairy"


class Team(str, Enum):
    VILLAGE = "village"
    WOLVES = "wolves"
    NEUTRAL = "neutral"


class Phase(str, Enum):
    """Current game phase."""

    LOBBY = "lobby"
    ROLE_REVEAL = "role_reveal"
    NIGHT = "night"
    DAY = "day"
    JURY_VOTING = "jury_voting"
    HUNTER_SHOT = "hunter_shot"
    FINISHED = "finished"


class Status(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class ActionType(str, Enum):
    """Night intents a player can submit."""

    WEREWOLF_KILL = "werewolf_kill"
    SEER_CHECK = "seer_check"
    DOCTOR_HEAL = "doctor_heal"
    GUARDIAN_PROTECT = "guardian_protect"
    PRIEST_BLESS = "priest_bless"
    SORCERESS_POISON = "sorceress_poison"
    SORCERESS_SAVE = "sorceress_save"
    CUPID_LOVE = "cupid_love"
    VIRGINIA_WOOLF_LINK = "virginia_woolf_link"
    SHAPESHIFTER_SELECT = "shapeshifter_select"
    RIVER_SIREN_CHARM = "river_siren_charm"
    SILENCER_SILENCE = "silencer_silence"
    ELDER_LEADER_EXILE = "elder_leader_exile"
    WITCH_HUNT = "witch_hunt"
    FAIRY_FIND = "fairy_find"
    FAIRY_KILL = "fairy_kill"
    VAMPIRE_BITE = "vampire_bite"
    CULT_RECRUIT = "cult_recruit"
    FISHERMAN_CATCH = "fisherman_catch"
    BANSHEE_SCREAM = "banshee_scream"
    LOOKOUT_SPY = "lookout_spy"
    RESURRECT = "resurrect"


class BondKind(str, Enum):
    """Bonded-fate relations: when one member dies, the partner follows."""

    TWIN = "twin"
    LOVER = "lover"
    LINK = "link"


class DeathCause(str, Enum):
    WEREWOLF_KILL = "werewolf_kill"
    POISON = "poison"
    VAMPIRE_KILL = "vampire_kill"
    FAIRY_KILL = "fairy_kill"
    LOOKOUT_CAUGHT = "lookout_caught"
    DROWNED = "drowned"
    VOTE = "vote"
    JURY_VOTE = "jury_vote"
    HUNTER_SHOT = "hunter_shot"
    DUEL = "duel"
    TWIN = "twin"
    LOVER = "lover"
    LINK = "link"


class WinnerCode(str, Enum):
    VILLAGERS = "villagers"
    WOLVES = "wolves"
    LOVERS = "lovers"
    CULT = "cult"
    VAMPIRE = "vampire"
    FISHERMAN = "fisherman"
    BANSHEE = "banshee"
    FAIRIES = "fairies"
    DRUNK_MAN = "drunk_man"
    EXECUTIONER = "executioner"
    DRAW = "draw"


class Resume(str, Enum):
    """Where the round continues once a hunter has taken their last shot."""

    DAY = "day"
    NEXT_NIGHT = "next_night"
    REVENGE_NIGHT = "revenge_night"


ROLE_TEAMS: dict[Role, Team] = {
    **{
        role: Team.VILLAGE
        for role in (
            Role.VILLAGER, Role.SEER, Role.DOCTOR, Role.HUNTER, Role.GUARDIAN,
            Role.PRIEST, Role.PRINCE, Role.LYCANTHROPE, Role.TWIN, Role.SORCERESS,
            Role.GHOST, Role.VIRGINIA_WOOLF, Role.LEPER, Role.RIVER_SIREN,
            Role.LOOKOUT, Role.TROUBLEMAKER, Role.SILENCER, Role.SEER_APPRENTICE,
            Role.ELDER_LEADER, Role.RESURRECTOR_ANGEL, Role.CURSED,
        )
    },
    **{
        role: Team.WOLVES
        for role in (Role.WEREWOLF, Role.WOLF_CUB, Role.WITCH, Role.SEEKER_FAIRY)
    },
    **{
        role: Team.NEUTRAL
        for role in (
            Role.CUPID, Role.SHAPESHIFTER, Role.DRUNK_MAN, Role.CULT_LEADER,
            Role.FISHERMAN, Role.VAMPIRE, Role.BANSHEE, Role.EXECUTIONER,
            Role.SLEEPING_FAIRY,
        )
    },
}

# Roles that vote in the nightly pack attack
PACK_ROLES = frozenset({Role.WEREWOLF, Role.WOLF_CUB})

# Roles counted as wolves for numeric dominance and village elimination
WOLF_ROLES = frozenset(r for r, team in ROLE_TEAMS.items() if team == Team.WOLVES)

# What the seer's vision reports as a wolf
SEER_WOLF_ROLES = frozenset({Role.WEREWOLF, Role.WOLF_CUB, Role.CURSED, Role.LYCANTHROPE})

# Boarding one of these drowns the fisherman
BOAT_EXPOSED_ROLES = frozenset({Role.WEREWOLF, Role.WOLF_CUB, Role.CURSED})

ROLE_ACTIONS: dict[Role, frozenset[ActionType]] = {
    Role.WEREWOLF: frozenset({ActionType.WEREWOLF_KILL}),
    Role.WOLF_CUB: frozenset({ActionType.WEREWOLF_KILL}),
    Role.SEER: frozenset({ActionType.SEER_CHECK}),
    Role.DOCTOR: frozenset({ActionType.DOCTOR_HEAL}),
    Role.GUARDIAN: frozenset({ActionType.GUARDIAN_PROTECT}),
    Role.PRIEST: frozenset({ActionType.PRIEST_BLESS}),
    Role.SORCERESS: frozenset({ActionType.SORCERESS_POISON, ActionType.SORCERESS_SAVE}),
    Role.CUPID: frozenset({ActionType.CUPID_LOVE}),
    Role.VIRGINIA_WOOLF: frozenset({ActionType.VIRGINIA_WOOLF_LINK}),
    Role.SHAPESHIFTER: frozenset({ActionType.SHAPESHIFTER_SELECT}),
    Role.RIVER_SIREN: frozenset({ActionType.RIVER_SIREN_CHARM}),
    Role.SILENCER: frozenset({ActionType.SILENCER_SILENCE}),
    Role.ELDER_LEADER: frozenset({ActionType.ELDER_LEADER_EXILE}),
    Role.WITCH: frozenset({ActionType.WITCH_HUNT}),
    Role.SEEKER_FAIRY: frozenset({ActionType.FAIRY_FIND, ActionType.FAIRY_KILL}),
    Role.SLEEPING_FAIRY: frozenset({ActionType.FAIRY_KILL}),
    Role.VAMPIRE: frozenset({ActionType.VAMPIRE_BITE}),
    Role.CULT_LEADER: frozenset({ActionType.CULT_RECRUIT}),
    Role.FISHERMAN: frozenset({ActionType.FISHERMAN_CATCH}),
    Role.BANSHEE: frozenset({ActionType.BANSHEE_SCREAM}),
    Role.LOOKOUT: frozenset({ActionType.LOOKOUT_SPY}),
    Role.RESURRECTOR_ANGEL: frozenset({ActionType.RESURRECT}),
}

# Bonding choices that only exist on the first night
FIRST_NIGHT_ACTIONS = frozenset({
    ActionType.CUPID_LOVE,
    ActionType.VIRGINIA_WOOLF_LINK,
    ActionType.SHAPESHIFTER_SELECT,
    ActionType.RIVER_SIREN_CHARM,
})

# Choices a player may change until the night resolves; everything else is final
MUTABLE_ACTIONS = frozenset({ActionType.WEREWOLF_KILL})

# Deaths that count as the village's verdict
LYNCH_CAUSES = frozenset({DeathCause.VOTE, DeathCause.JURY_VOTE})

# Special roles dealt in pairs
PAIRED_ROLES = frozenset({Role.TWIN})

MIN_PLAYERS = 3
MAX_PLAYERS = 32

# One wolf per this many players when settings leave the count open
PLAYERS_PER_WOLF = 5

PHASE_DURATION_SECONDS = 60

VAMPIRE_BITES_TO_KILL = 3
VAMPIRE_KILLS_TO_WIN = 3
BANSHEE_POINTS_TO_WIN = 2
GUARDIAN_SELF_PROTECT_LIMIT = 1

# The lookout survives the night with this probability
LOOKOUT_SURVIVAL_CHANCE = 0.4

# Pack targets allowed on the night after the wolf cub dies
REVENGE_KILL_COUNT = 2


def team_of(role: Role | None) -> Team | None:
    """Return the team a role plays for, or None before roles are dealt."""
    if role is None:
        return None
    return ROLE_TEAMS[role]
