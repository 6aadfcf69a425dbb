import factory
from faker import Faker

from backend.plantcare.schemas.household import Household
from backend.plantcare.schemas.user import User

fake = Faker()


class HouseholdFactory(factory.Factory):
    class Meta:
        model = Household

    id = factory.LazyFunction(lambda: fake.hexify(text="^" * 32, upper=False))
    name = factory.Faker("last_name")
    join_code = factory.Sequence(lambda n: f"{100000 + n:06d}")
    members = factory.LazyFunction(list)


class UserFactory(factory.Factory):
    class Meta:
        model = User

    id = factory.LazyFunction(lambda: fake.hexify(text="^" * 32, upper=False))
    email = factory.Faker("email")
    username = factory.Faker("user_name")
    join_date = 1_700_000_000_000
    households = factory.LazyFunction(list)
