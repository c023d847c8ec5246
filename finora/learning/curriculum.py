"""
Learning Hub Curriculum

The static course: ten short lessons, each closed by a three-question
quiz. Lesson and question ids are what LearningProgress records refer
to, so they must never be renumbered.
"""

from typing import Optional

from finora.models.learning import Lesson, QuizQuestion


def _question(qid: str, question: str, options: list[str], answer: int) -> QuizQuestion:
    return QuizQuestion(id=qid, question=question, options=options, correct_answer=answer)


LESSONS: tuple[Lesson, ...] = (
    Lesson(
        id="l1",
        title="The 50/30/20 Rule",
        category="Budgeting",
        duration_minutes=5,
        summary="A simple budgeting framework allocating 50% to needs, 30% to wants, and 20% to savings.",
        key_takeaways=[
            "Needs are essential for survival.",
            "Wants are for lifestyle enhancements.",
            "Savings ensure future financial stability.",
        ],
        questions=[
            _question("q1", 'What percentage of income should go to "Wants"?',
                      ["50%", "20%", "30%", "10%"], 2),
            _question("q2", 'Which category does "Rent" fall into?',
                      ["Wants", "Savings", "Needs", "Investments"], 2),
            _question("q3", "What is the primary goal of the 20% category?",
                      ["Buying luxury items", "Building wealth and security",
                       "Covering daily bills", "Paying for vacations"], 1),
        ],
    ),
    Lesson(
        id="l2",
        title="Understanding Compound Interest",
        category="Investing",
        duration_minutes=7,
        summary="Interest calculated on the initial principal and also on the accumulated interest of previous periods.",
        key_takeaways=[
            "It allows money to grow exponentially.",
            "Time is the most critical factor.",
            "Start investing early to maximize benefits.",
        ],
        questions=[
            _question("q1", "Compound interest is calculated on:",
                      ["Principal only", "Principal + Accumulated Interest",
                       "Interest only", "None of the above"], 1),
            _question("q2", 'What creates the "snowball effect"?',
                      ["Spending money", "Interest earning interest",
                       "Fixed interest rates", "Withdrawing early"], 1),
            _question("q3", "According to the Rule of 72, how long to double money at 8% return?",
                      ["5 years", "9 years", "12 years", "7.2 years"], 1),
        ],
    ),
    Lesson(
        id="l3",
        title="Debt Snowball vs. Avalanche",
        category="Debt",
        duration_minutes=6,
        summary="Two strategies for debt repayment: one prioritizes psychology (balance size), the other mathematics (interest rate).",
        key_takeaways=[
            "Snowball: Smallest balance first (Motivation).",
            "Avalanche: Highest interest first (Math).",
            "Both require minimum payments on all other debts.",
        ],
        questions=[
            _question("q1", "Which method prioritizes the highest interest rate?",
                      ["Snowball", "Avalanche", "Waterfall", "Rollercoaster"], 1),
            _question("q2", "The main benefit of the Snowball method is:",
                      ["Psychological motivation", "Mathematical efficiency",
                       "Lower interest paid", "Tax benefits"], 0),
            _question("q3", "In both methods, what do you do with non-target debts?",
                      ["Stop paying them", "Pay minimums only", "Pay half",
                       "Consolidate them"], 1),
        ],
    ),
    Lesson(
        id="l4",
        title="Emergency Fund Planning",
        category="Budgeting",
        duration_minutes=5,
        summary="A safety net of 3-6 months of expenses kept in a liquid account for unexpected events.",
        key_takeaways=[
            "Target 3-6 months of expenses.",
            "Keep it liquid (Savings Account).",
            "Do not invest this money in stocks.",
        ],
        questions=[
            _question("q1", "How many months of expenses should you save?",
                      ["1 month", "3-6 months", "1 year", "2 weeks"], 1),
            _question("q2", "Where should an emergency fund be kept?",
                      ["Stock Market", "Checking Account",
                       "High Yield Savings Account", "Real Estate"], 2),
            _question("q3", "What is the primary purpose of this fund?",
                      ["Vacations", "Unexpected financial shocks",
                       "Down payment", "Retirement"], 1),
        ],
    ),
    Lesson(
        id="l5",
        title="Good Debt vs. Bad Debt",
        category="Debt",
        duration_minutes=6,
        summary="Distinguishing between debt that builds wealth and debt that destroys it.",
        key_takeaways=[
            "Good debt increases potential wealth (Home, Education).",
            "Bad debt buys depreciating assets (Consumables).",
            "High interest usually signals bad debt.",
        ],
        questions=[
            _question("q1", 'Which of the following is generally considered "Good Debt"?',
                      ["Credit Card Debt", "Payday Loan", "Mortgage", "Vacation Loan"], 2),
            _question("q2", "Bad debt is usually characterized by:",
                      ["Tax deductibility", "High interest rates and depreciation",
                       "Income generation", "Appreciation"], 1),
            _question("q3", "Can good debt become bad?",
                      ["No, never", "Yes, if you over-leverage",
                       "Only during a recession", "Only if the bank closes"], 1),
        ],
    ),
    Lesson(
        id="l6",
        title="Basics of Mutual Funds",
        category="Investing",
        duration_minutes=8,
        summary="A vehicle for pooling money to invest in a diversified portfolio managed by professionals.",
        key_takeaways=[
            "Instant diversification.",
            "Professional management.",
            "Pooled resources from many investors.",
        ],
        questions=[
            _question("q1", "What is the main benefit of mutual funds?",
                      ["Guaranteed returns", "Diversification", "No fees",
                       "Free insurance"], 1),
            _question("q2", "Who manages the investments in a mutual fund?",
                      ["The government", "Stock robots",
                       "Professional fund managers", "The bank teller"], 2),
            _question("q3", "What does NAV stand for?",
                      ["Net Average Value", "New Asset Valuation",
                       "Net Asset Value", "National Association of Value"], 2),
        ],
    ),
    Lesson(
        id="l7",
        title="Credit Score Explained",
        category="Basics",
        duration_minutes=6,
        summary="A numerical summary of your credit health that determines your borrowing power.",
        key_takeaways=[
            "Payment history is the biggest factor.",
            "Keep utilization low (below 30%).",
            "High scores save money on interest.",
        ],
        questions=[
            _question("q1", "What is the most impactful factor on your credit score?",
                      ["Credit Mix", "Payment History", "New Credit", "Total Debt"], 1),
            _question("q2", "A good rule of thumb is to keep credit utilization below:",
                      ["50%", "100%", "30%", "10%"], 2),
            _question("q3", "Who uses your credit score?",
                      ["Your friends", "Lenders and landlords", "Grocery stores",
                       "Libraries"], 1),
        ],
    ),
    Lesson(
        id="l8",
        title="How Inflation Affects Money",
        category="Basics",
        duration_minutes=5,
        summary="The silent erosion of purchasing power over time.",
        key_takeaways=[
            "Inflation reduces what your money can buy.",
            "Cash loses value over time.",
            "Investing is necessary to beat inflation.",
        ],
        questions=[
            _question("q1", "What happens to purchasing power during inflation?",
                      ["It increases", "It stays the same", "It decreases", "It doubles"], 2),
            _question("q2", "Why is keeping all savings in cash risky?",
                      ["It might get stolen", "Inflation erodes its value",
                       "Banks charge fees", "It gets moldy"], 1),
            _question("q3", "What is a common hedge against inflation?",
                      ["Keeping cash", "Investing in assets", "Selling everything",
                       "Spending it all"], 1),
        ],
    ),
    Lesson(
        id="l9",
        title="Introduction to Tax Planning",
        category="Basics",
        duration_minutes=7,
        summary="Strategies to legally minimize tax liability and maximize take-home wealth.",
        key_takeaways=[
            "Tax avoidance is legal; evasion is not.",
            "Use tax-advantaged accounts.",
            "Long-term holdings often have lower tax rates.",
        ],
        questions=[
            _question("q1", "What is the main goal of tax planning?",
                      ["Evading taxes", "Paying maximum tax", "Tax efficiency",
                       "Hiding money"], 2),
            _question("q2", "Which of these is generally taxable at a lower rate?",
                      ["Regular income", "Short-term capital gains",
                       "Long-term capital gains", "Bonuses"], 2),
            _question("q3", "Using a 401(k) to lower taxable income is an example of:",
                      ["Tax Evasion", "Tax Avoidance", "Tax Fraud", "Tax Negligence"], 1),
        ],
    ),
    Lesson(
        id="l10",
        title="Diversification & Asset Allocation",
        category="Investing",
        duration_minutes=6,
        summary="Managing risk by spreading investments across different asset classes.",
        key_takeaways=[
            "Don't put all eggs in one basket.",
            "Asset allocation depends on risk tolerance.",
            "Rebalancing maintains your strategy.",
        ],
        questions=[
            _question("q1", "The main purpose of diversification is to:",
                      ["Maximize returns", "Reduce risk", "Eliminate fees",
                       "Speed up growth"], 1),
            _question("q2", "Asset allocation is primarily based on:",
                      ["Hot stock tips", "Market timing",
                       "Risk tolerance and time horizon", "News headlines"], 2),
            _question("q3", "What is rebalancing?",
                      ["Buying more stocks", "Selling everything",
                       "Resetting portfolio to target allocation", "Withdrawing cash"], 2),
        ],
    ),
)

_LESSONS_BY_ID = {lesson.id: lesson for lesson in LESSONS}


def get_lesson(lesson_id: str) -> Optional[Lesson]:
    return _LESSONS_BY_ID.get(lesson_id)
