"""
Static challenge catalog and seeding.

Ids are derived with uuid5 from the category name and template title, so a
reseeded database keeps the same ids and therefore the same deterministic
template picks for past and future dates.
"""

from __future__ import annotations

from typing import Dict, List, Tuple
from uuid import NAMESPACE_URL, uuid5

from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges.store import ChallengeStore
from dailychallenge.models.challenge import Category, ChallengeTemplate

_ID_NAMESPACE = uuid5(NAMESPACE_URL, "dailychallenge/catalog")

# name -> (color, icon, [(title, description), ...])
CHALLENGE_CATALOG: Dict[str, Tuple[str, str, List[Tuple[str, str]]]] = {
    "Fitness": ("#4CAF50", "fitness", [
        ("Do 20 push-ups", "Challenge yourself with a set of push-ups to build upper body strength."),
        ("Take a 30-minute walk", "Go for a refreshing walk to get your body moving and enjoy some fresh air."),
        ("Try a 10-minute yoga session", "Take a short break for some gentle yoga stretches to improve flexibility."),
        ("Do 50 jumping jacks", "Get your heart rate up with some quick cardio exercise."),
        ("Hold a plank for 1 minute", "Test your core strength with this simple but effective exercise."),
        ("Take the stairs instead of elevator all day", "Build leg strength and get some extra cardio throughout your day."),
        ("Do 3 sets of 10 squats", "Work your lower body with this fundamental strength exercise."),
        ("Stretch for 15 minutes", "Improve your flexibility and reduce muscle tension with a dedicated stretching session."),
        ("Go for a 15-minute jog", "Get some cardio in with a quick run around your neighborhood."),
        ("Do 25 sit-ups", "Strengthen your core with this classic abdominal exercise."),
    ]),
    "Creativity": ("#FF9800", "creativity", [
        ("Draw a self-portrait", "Express yourself through art by creating a drawing of yourself."),
        ("Write a short poem", "Tap into your creative writing skills with a brief poetic expression."),
        ("Take 10 interesting photographs", "Look for unique perspectives and capture them with your camera."),
        ("Create a playlist of new music", "Curate a collection of songs you haven't heard before."),
        ("Cook a new recipe", "Experiment in the kitchen with a dish you've never made before."),
        ("Write a page of fiction", "Let your imagination flow by writing a short story or scene."),
        ("Redesign your workspace", "Get creative with your environment by rearranging or decorating your work area."),
        ("Sketch an object from three different angles", "Practice your observational drawing skills with this exercise."),
        ("Create a vision board", "Visualize your goals and aspirations through a collage of images and words."),
        ("Write a letter to your future self", "Reflect on your current thoughts and aspirations in a letter to read later."),
    ]),
    "Learning": ("#2196F3", "learning", [
        ("Learn 5 new words in another language", "Expand your vocabulary in a foreign language of your choice."),
        ("Read an article about a new topic", "Broaden your knowledge by exploring an unfamiliar subject."),
        ("Watch a documentary", "Gain insights through an educational film on a topic that interests you."),
        ("Listen to an educational podcast", "Learn something new during your commute or while doing chores."),
        ("Take a free online lesson", "Find a short course or tutorial on a skill you'd like to develop."),
        ("Research the history of something you use daily", "Discover the origins and evolution of an everyday item."),
        ("Learn a new keyboard shortcut", "Boost your productivity by mastering a helpful computer trick."),
        ("Read a chapter of a non-fiction book", "Expand your knowledge through focused reading on a factual topic."),
        ("Watch a TED talk", "Get inspired and informed by an expert presentation on an interesting subject."),
        ("Practice a musical instrument for 20 minutes", "Develop your musical abilities through dedicated practice time."),
    ]),
    "Productivity": ("#9C27B0", "productivity", [
        ("Clear your email inbox", "Organize your digital communications by sorting and responding to messages."),
        ("Create a to-do list for the week", "Plan ahead by outlining your upcoming tasks and priorities."),
        ("Declutter one area of your home", "Simplify your environment by organizing a specific space."),
        ("Set three achievable goals for today", "Focus your energy on accomplishing specific objectives."),
        ("Update your resume or portfolio", "Keep your professional materials current with your latest accomplishments."),
        ("Plan your meals for the week", "Save time and make healthier choices through advance meal planning."),
        ("Schedule all your appointments for the month", "Get organized by setting up your calendar with upcoming commitments."),
        ("Implement a new organization system", "Improve your efficiency with a better way to manage your tasks or belongings."),
        ("Complete that task you've been avoiding", "Tackle the item on your to-do list that you've been putting off."),
        ("Review and update your budget", "Take control of your finances by examining your spending and saving habits."),
    ]),
    "Mindfulness": ("#00BCD4", "mindfulness", [
        ("Meditate for 10 minutes", "Take time to quiet your mind and focus on your breathing."),
        ("Practice gratitude by listing 5 things you appreciate", "Cultivate a positive mindset by acknowledging good things in your life."),
        ("Take a tech-free lunch break", "Disconnect from devices to be fully present during your meal."),
        ("Do a body scan meditation", "Bring awareness to each part of your body from head to toe."),
        ("Practice mindful eating for one meal", "Pay full attention to the experience of eating without distractions."),
        ("Take 5 deep breaths when you feel stressed", "Use breathing techniques to center yourself during challenging moments."),
        ("Spend 15 minutes in nature", "Connect with the natural world by observing plants, animals, or landscapes."),
        ("Write down your thoughts for 10 minutes", "Clear your mind through expressive writing without judgment."),
        ("Practice active listening in a conversation", "Give your full attention to someone without planning your response."),
        ("Do a mindful walking exercise", "Focus on the sensations of walking, noticing each step and your surroundings."),
    ]),
    "Social": ("#F44336", "social", [
        ("Call a friend or family member you haven't spoken to recently", "Reconnect with someone important in your life."),
        ("Give a genuine compliment to three people", "Spread positivity by acknowledging others in a meaningful way."),
        ("Volunteer or help someone in need", "Contribute to your community through an act of service."),
        ("Invite someone new for coffee or lunch", "Expand your social circle by reaching out to a potential friend."),
        ("Send a thank you note to someone who has helped you", "Express gratitude to acknowledge someone's positive impact."),
        ("Attend a community event", "Engage with your local community by participating in a shared activity."),
        ("Have a meaningful conversation about something important", "Deepen a relationship through substantive discussion."),
        ("Reconnect with an old friend", "Revive a valuable relationship that may have faded over time."),
        ("Join an online or in-person group related to your interests", "Connect with like-minded people who share your passions."),
        ("Practice active listening with someone important to you", "Show care by giving your full attention without interrupting."),
    ]),
}


def category_id_for(name: str) -> str:
    return str(uuid5(_ID_NAMESPACE, f"category:{name}"))


def template_id_for(category_name: str, title: str) -> str:
    return str(uuid5(_ID_NAMESPACE, f"template:{category_name}:{title}"))


def build_catalog() -> Tuple[List[Category], List[ChallengeTemplate]]:
    """Materialize CHALLENGE_CATALOG as domain models."""
    built_categories: List[Category] = []
    built_templates: List[ChallengeTemplate] = []
    for name, (color, icon, prompts) in CHALLENGE_CATALOG.items():
        category = Category(id=category_id_for(name), name=name, color=color, icon=icon)
        built_categories.append(category)
        for title, description in prompts:
            built_templates.append(
                ChallengeTemplate(
                    id=template_id_for(name, title),
                    title=title,
                    description=description,
                    category_id=category.id,
                )
            )
    return built_categories, built_templates


def has_catalog(store: ChallengeStore) -> bool:
    return bool(store.fetch_all_categories())


def seed_catalog(store: ChallengeStore, *, force: bool = False) -> Tuple[int, int]:
    """
    Seed categories and templates. Skips entirely when a catalog exists unless
    ``force`` is set, in which case only missing rows are added.

    Returns:
        (categories_added, templates_added)
    """
    if has_catalog(store) and not force:
        log_event("info", "catalog.seed.skipped", event_type="catalog.seed", extra={"reason": "existing data"})
        return 0, 0

    built_categories, built_templates = build_catalog()

    categories_added = 0
    for category in built_categories:
        if store.add_category(category):
            categories_added += 1
        else:
            log_event("warning", "catalog.seed.category_exists", event_type="catalog.seed", extra={"category": category.name})

    known_categories = {c.id for c in store.fetch_all_categories()}
    existing_templates = {
        t.id
        for category_id in known_categories
        for t in store.fetch_templates_for_category(category_id)
    }

    templates_added = 0
    for template in built_templates:
        if template.category_id not in known_categories or template.id in existing_templates:
            continue
        store.add_template(template)
        templates_added += 1

    log_event(
        "info",
        "catalog.seeded",
        event_type="catalog.seed",
        extra={"categories": categories_added, "templates": templates_added},
    )
    return categories_added, templates_added
