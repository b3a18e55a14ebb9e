"""
Message templates per activity type.

Placeholders use str.format fields. A template is picked once when the event
is created and only the rendered text is stored.
"""

from __future__ import annotations

import random
from typing import Dict, List

NEW_HIGH_SCORE = [
    "{username} beat their all-time high score in {gameName}, improving from {previousHigh} to {newHigh}!",
    "Incredible! {username} just raised their game in {gameName}, moving from {previousHigh} to {newHigh}!",
    "{username} is locked in on {gameName} 😳 they went from {previousHigh} to {newHigh}!",
    "Define locked in: {username} just went from {previousHigh} to {newHigh} in {gameName}",
    "The glow-up is real: {username} leveled up their {gameName} score from {previousHigh} to {newHigh}!",
    "W player detected. {username} went from {previousHigh} to {newHigh} in {gameName} like it was nothing.",
    "{username} said 'new score just dropped' and hit {newHigh} in {gameName} (previous was {previousHigh})",
    "{username} upgraded their stats IRL, from {previousHigh} to {newHigh} in {gameName}!",
]

FRIEND_HIGH_SCORE_BEATEN = [
    "Someone's having a good day! {username} just beat your all-time high in {gameName}!",
    "Big news! {username} has surpassed your top score in {gameName}!",
    "{username} just MOGGED your score in {gameName}... skill issue?",
    "Only in Ohio bro, {username} left your {gameName} score in the dust!",
    "Sheeesh, {username} just hit a new PR in {gameName} and left you lookin like a tutorial level.",
    "Oof... {username} just hard diffed you in {gameName}. Time to lock in?",
    "Breaking news: {username} went sigma mode in {gameName} and shattered your record!",
    "{username} pulled up on {gameName} and said 'watch this'. Your score got packed.",
    "Your {gameName} score? Gone. Packed. Shipped. Thanks to {username}.",
    "Historic hater moment from {username}: your {gameName} score didn't stand a chance.",
    "Pray for your scoreboard... {username} is farming in {gameName} right now.",
    "'Nah, I'd win' is what {username} said before smoking you in {gameName}.",
]

FRIEND_DAILY_BEST_BEATEN = [
    "{username} just beat your daily score in {gameName} by {diff} points!",
    "Heads up! {username}'s new daily score in {gameName} beats yours by {diff} points!",
    "It's looking rough... {username} cooked you by {diff} points today in {gameName}.",
    "Today's scoreboard? {username} owns it. Beat you by {diff} points in {gameName}.",
    "{username} just woke up and decided to drop {diff} points more than you in {gameName}.",
    "You were doing good until {username} dropped {diff} points on your head in {gameName}.",
    "Daily leaderboard check... {username} left you behind by {diff} points in {gameName}.",
    "{username} said 'lemme just slide in first place real quick', up by {diff} points in {gameName}.",
    "Unlucky... {username} outscored you by {diff} points in {gameName} today. Pack watch?",
    "{username} moving like it's a side quest: beat you by {diff} points in {gameName}.",
    "Another day, another diff... {username} leads by {diff} points in {gameName}.",
]

MILESTONE = [
    "{username} just reached {totalPlays} plays in {gameName}!",
    "Milestone unlocked! {username} hit {totalPlays} plays in {gameName}!",
    "We might need to nerf {username}... {totalPlays} plays in {gameName} already?",
    "{username} is on demon hours with {totalPlays} plays in {gameName}!",
    "Certified grinder alert: {username} just hit {totalPlays} plays in {gameName}!",
    "Bro thinks they're in an anime: {username} just crossed {totalPlays} plays in {gameName}.",
    "{username} been clocking in like it's a 9 to 5: {totalPlays} plays in {gameName}.",
    "{username} got that 'one more game' syndrome... {totalPlays} plays in {gameName}!",
    "They said it couldn't be done. {username} said bet. {totalPlays} plays in {gameName}.",
    "Legend says {username} hasn't touched grass since hitting {totalPlays} plays in {gameName}.",
    "Casuals log off... grinders like {username} hit {totalPlays} plays in {gameName}.",
    "At this point {username} might live in {gameName}. {totalPlays} plays deep.",
]

DAILY_STREAK = [
    "{username} finished today's daily games. Streak is now {dailyStreak}!",
    "{dailyStreak} days and counting: {username} cleared the dailies again.",
    "{username} is on a {dailyStreak}-day streak. Can anyone keep up?",
    "Daily grind complete. {username} keeps the streak alive at {dailyStreak}.",
    "Another day, another daily. {username} is at {dailyStreak} in a row.",
]

TEMPLATES: Dict[str, List[str]] = {
    "newHighScore": NEW_HIGH_SCORE,
    "friendHighScoreBeaten": FRIEND_HIGH_SCORE_BEATEN,
    "friendDailyBestBeaten": FRIEND_DAILY_BEST_BEATEN,
    "milestone": MILESTONE,
    "dailyStreak": DAILY_STREAK,
}


def render(event_type: str, rng: random.Random, **fields) -> str:
    """Pick one template uniformly at random and fill it in."""
    template = rng.choice(TEMPLATES[event_type])
    return template.format(**fields)
